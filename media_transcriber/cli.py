"""CLI interface for the transcriber."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from . import __version__
from .audio import SUPPORTED_EXTENSIONS, check_ffmpeg, discover_media_files, is_video_file
from .backends.base import MediaTranscoder, SpeechBackend
from .backends.registry import DEFAULT_MODEL, list_models, resolve_model
from .batch import BatchRunner, BatchSummary, FileItem, FileStatus
from .cancel import install_signal_handlers
from .config import TranscriberConfig, generate_sample_config, resolve_config
from .errors import PERMISSION_ERRORS, ConfigInvalid
from .extractor import AudioExtractor
from .formatters import OutputFormat, encode
from .logging_config import configure_logging
from .transcriber import Transcriber

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="transcriber",
    help="Transcribe audio and video files to text, JSON, SRT or VTT.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def create_backend(model: str) -> SpeechBackend:
    """Build the speech backend for ``model``."""
    from .backends.parakeet import ParakeetBackend

    return ParakeetBackend(model_id=model)


def create_transcoder() -> MediaTranscoder:
    """Build the media transcoder used for video inputs."""
    from .backends.ffmpeg import FfmpegTranscoder

    return FfmpegTranscoder()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"transcriber {__version__}")
        raise typer.Exit()


def list_models_callback(value: bool) -> None:
    """Print curated models and exit."""
    if value:
        console.print("[bold]Available Models:[/bold]\n")
        for model in list_models():
            console.print(f"  [cyan]{model.model_id}[/cyan]")
            if model.aliases:
                console.print(f"    Aliases: {', '.join(model.aliases)}")
            console.print(f"    Languages: {len(model.languages)}")
            console.print(f"    {model.description}")
            console.print()
        raise typer.Exit()


def _flag(value: bool) -> Optional[bool]:
    """Command-line flags can only switch a setting on; unset flags defer to config files."""
    return True if value else None


def _expand_inputs(inputs: list[Path], recursive: bool) -> list[Path]:
    """Expand directories into their media files; explicit file paths are kept as given."""
    files: list[Path] = []
    for path in inputs:
        if path.is_dir():
            files.extend(discover_media_files([path], recursive=recursive))
        else:
            files.append(path)
    return files


def _show_error(message: str, details: Optional[str] = None) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")
    if details:
        err_console.print(f"   [dim]{details}[/dim]")


def _show_header(config: TranscriberConfig, file_count: int) -> None:
    err_console.print()
    err_console.print(f"[bold cyan]Transcriber v{__version__}[/bold cyan]")
    err_console.print()
    err_console.print("[bold]Configuration[/bold]")
    err_console.print(f"   Language: [yellow]{config.language}[/yellow]")
    err_console.print(f"   Format: [yellow]{config.format}[/yellow]")
    err_console.print(f"   Mode: [yellow]{'On-device' if config.on_device else 'Server-based'}[/yellow]")
    err_console.print(f"   Files: [yellow]{file_count}[/yellow]")
    err_console.print()


def _show_languages(languages: list[tuple[str, bool]]) -> None:
    on_device = [lang for lang, local in languages if local]
    server = [lang for lang, local in languages if not local]

    console.print("[bold]Supported Languages[/bold]\n")
    if on_device:
        console.print("   [bold]On-device (Private)[/bold]")
        for language in on_device:
            console.print(f"      [green]●[/green] {language}")
        console.print()
    if server:
        console.print("   [bold]Server-based[/bold]")
        for language in server:
            console.print(f"      [blue]●[/blue] {language}")
        console.print()


def _generate_config_files(directory: Path) -> None:
    console.print("[bold]Generating sample configuration files[/bold]\n")
    for fmt in ("yaml", "json"):
        path = generate_sample_config(fmt, directory / f".transcriber.{fmt}")
        console.print(f"   [green]✓[/green] Created {path}")
    console.print()
    console.print("[bold]Usage:[/bold]")
    console.print("   • Edit either file to set your default preferences")
    console.print("   • Configuration files are searched in this order:")
    console.print("     1. Custom config file (--config flag)")
    console.print("     2. Home directory (~/.transcriber.yaml or ~/.transcriber.json)")
    console.print("     3. Project root (./.transcriber.yaml or ./.transcriber.json)")
    console.print("   • Command-line arguments override config file settings")


def _format_duration(seconds: float) -> str:
    minutes, remaining = divmod(int(seconds), 60)
    return f"{minutes}m {remaining}s" if minutes > 0 else f"{seconds:.1f}s"


def _report_item(
    item: FileItem,
    fmt: OutputFormat,
    verbose: bool,
) -> None:
    """Print the outcome of one file."""
    if item.status == FileStatus.CANCELLED:
        err_console.print(f"[yellow]Cancelled {item.path.name}[/yellow]\n")
        return
    if item.status == FileStatus.ERROR:
        _show_error(f"Failed to transcribe {item.path}", item.error)
        err_console.print()
        return

    result = item.result
    err_console.print("[bold green]✓ Transcription Complete[/bold green]")
    if verbose and result is not None:
        err_console.print(f"   Duration: [dim]{_format_duration(result.duration)}[/dim]")
        err_console.print(f"   Confidence: [dim]{result.average_confidence * 100:.1f}%[/dim]")
        err_console.print(f"   Segments: [dim]{len(result.segments)}[/dim]")
        err_console.print(
            f"   Privacy: [dim]{'On-device' if result.is_on_device else 'Server-based'}[/dim]"
        )

    if item.output_path is not None:
        err_console.print(f"   Saved to: [cyan]{item.output_path}[/cyan]\n")
    elif result is not None:
        console.print(encode(result, fmt), markup=False, highlight=False, soft_wrap=True)


def _print_summary(summary: BatchSummary) -> None:
    """Print batch summary for multi-file runs."""
    if summary.total < 2:
        return
    err_console.print("[bold]Batch Processing Summary[/bold]")
    err_console.print(f"   Total: {summary.total}")
    err_console.print(f"   [green]✓ Successful: {summary.succeeded}[/green]")
    if summary.failed:
        err_console.print(f"   [red]✗ Failed: {summary.failed}[/red]")
    if summary.cancelled:
        err_console.print(f"   [yellow]Cancelled: {summary.cancelled}[/yellow]")
    err_console.print()


def _check_ffmpeg_warning() -> None:
    """Print ffmpeg warning if not found."""
    err_console.print(
        "[yellow]Warning: ffmpeg not found. Video files cannot be processed.[/yellow]"
    )
    err_console.print("[yellow]Install with: brew install ffmpeg[/yellow]")


def _run_batch(
    files: list[Path],
    config: TranscriberConfig,
    backend: SpeechBackend,
    output: Optional[Path],
) -> BatchSummary:
    """Transcribe ``files`` with a rich progress bar per file."""
    fmt = OutputFormat.parse(config.format or "txt")
    show_bar = bool(config.show_progress) or not config.no_color

    transcriber = Transcriber(backend)
    extractor = AudioExtractor(create_transcoder()) if any(map(is_video_file, files)) else None
    runner = BatchRunner(transcriber, config, extractor=extractor, explicit_output=output)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=err_console,
        disable=not show_bar,
    )
    current_task: list = []

    def on_progress(value: float, message: str) -> None:
        if current_task:
            progress.update(current_task[0], completed=value, description=message or "Processing...")

    def on_start(index: int, item: FileItem) -> None:
        progress.console.print(
            f"[bold]Processing [{index}/{len(files)}][/bold] [dim]{item.path.name}[/dim]"
        )
        if config.verbose and item.path.is_file():
            progress.console.print(f"   Size: [dim]{item.path.stat().st_size:,} bytes[/dim]")
        current_task[:] = [progress.add_task("Initializing...", total=1.0)]

    def on_item(item: FileItem) -> None:
        if current_task:
            progress.remove_task(current_task.pop())
        _report_item(item, fmt, bool(config.verbose))

    unsubscribe = runner.subscribe(on_progress)
    restore_signals = install_signal_handlers(runner.cancel_all)
    try:
        with progress:
            return runner.run(files, on_start=on_start, on_item=on_item)
    finally:
        restore_signals()
        unsubscribe()


@app.command()
def main(
    inputs: Annotated[
        Optional[list[Path]],
        typer.Argument(
            help="Audio/video files or directories to transcribe",
        ),
    ] = None,
    format: Annotated[
        Optional[str],
        typer.Option(
            "--format", "-f",
            help="Output format: txt, json, srt, vtt",
        ),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output", "-o",
            help="Output file path (default: print a single result, or write beside each input)",
        ),
    ] = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--output-dir",
            help="Output directory for batch processing",
        ),
    ] = None,
    language: Annotated[
        Optional[str],
        typer.Option(
            "--language", "-l",
            help="Language code (e.g., en-US, es-ES)",
        ),
    ] = None,
    on_device: Annotated[
        bool,
        typer.Option(
            "--on-device",
            help="Use on-device recognition (more private, limited languages)",
        ),
    ] = False,
    model: Annotated[
        str,
        typer.Option(
            "--model", "-m",
            help="HuggingFace model ID or alias (see --list-models)",
        ),
    ] = DEFAULT_MODEL,
    recursive: Annotated[
        bool,
        typer.Option(
            "--recursive", "-r",
            help="Search directories recursively",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose", "-v",
            help="Verbose output",
        ),
    ] = False,
    show_progress: Annotated[
        bool,
        typer.Option(
            "--show-progress",
            help="Show progress during transcription",
        ),
    ] = False,
    no_color: Annotated[
        bool,
        typer.Option(
            "--no-color",
            help="Disable colored output and progress bars",
        ),
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            help="Path to custom configuration file",
        ),
    ] = None,
    generate_config: Annotated[
        bool,
        typer.Option(
            "--generate-config",
            help="Generate sample configuration files in the current directory",
        ),
    ] = False,
    list_languages: Annotated[
        bool,
        typer.Option(
            "--list-languages",
            help="List supported languages",
        ),
    ] = False,
    list_models_flag: Annotated[
        Optional[bool],
        typer.Option(
            "--list-models",
            callback=list_models_callback,
            is_eager=True,
            help="List supported models and exit",
        ),
    ] = None,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version", "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """Transcribe audio and video files to text, JSON, SRT or VTT."""
    configure_logging(verbose=verbose, no_color=no_color)

    if generate_config:
        try:
            _generate_config_files(Path.cwd())
        except (ConfigInvalid, OSError) as e:
            _show_error("Cannot write configuration files", str(e))
            raise typer.Exit(1)
        raise typer.Exit()

    overrides = TranscriberConfig(
        language=language,
        format=format.lower() if format else None,
        on_device=_flag(on_device),
        output_dir=str(output_dir) if output_dir else None,
        verbose=_flag(verbose),
        show_progress=_flag(show_progress),
        no_color=_flag(no_color),
    )
    try:
        effective = resolve_config(config, overrides)
    except ConfigInvalid as e:
        _show_error("Configuration Error", e.describe(verbose=verbose))
        raise typer.Exit(1)

    configure_logging(verbose=bool(effective.verbose), no_color=bool(effective.no_color))
    if effective.no_color:
        console.no_color = True
        err_console.no_color = True

    try:
        resolve_model(model)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--model")
    backend = create_backend(model)

    if list_languages:
        _show_languages(Transcriber(backend).supported_languages())
        raise typer.Exit()

    if not inputs:
        _show_error("No input files specified", "Use 'transcriber --help' for usage information")
        raise typer.Exit(1)

    files = _expand_inputs(inputs, recursive)
    if not files:
        _show_error(
            "No media files found.",
            f"Supported formats: {', '.join(sorted(SUPPORTED_EXTENSIONS))}",
        )
        raise typer.Exit(1)

    if any(map(is_video_file, files)) and not check_ffmpeg():
        _check_ffmpeg_warning()

    if not effective.no_color:
        _show_header(effective, len(files))

    try:
        summary = _run_batch(files, effective, backend, output)
    except PERMISSION_ERRORS as e:
        _show_error(e.describe(verbose=bool(effective.verbose)))
        raise typer.Exit(1)

    _print_summary(summary)

    if not summary.ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
