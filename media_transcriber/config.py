"""
Layered configuration for the transcriber.

Configuration Priority (lowest to highest):
    1. Built-in defaults
    2. Home directory: ~/.transcriber.yaml, then ~/.transcriber.json
    3. Project directory: ./.transcriber.yaml, then ./.transcriber.json
    4. Custom file (--config); when given it is the only file consulted
    5. Command-line overrides

Every field is optional in every layer. A layer only overrides the fields
it actually sets, so merging is done field by field rather than by
replacing whole records.
"""

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigInvalid

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".transcriber"
YAML_EXTENSIONS = (".yaml", ".yml")
JSON_EXTENSIONS = (".json",)
VALID_FORMATS = ("txt", "json", "srt", "vtt")

# File keys (camelCase) -> (attribute name, expected type)
FIELD_KEYS: dict[str, tuple[str, type]] = {
    "language": ("language", str),
    "format": ("format", str),
    "onDevice": ("on_device", bool),
    "outputDir": ("output_dir", str),
    "verbose": ("verbose", bool),
    "showProgress": ("show_progress", bool),
    "noColor": ("no_color", bool),
}


@dataclass(frozen=True)
class TranscriberConfig:
    """One configuration layer, or the effective configuration after merging.

    Attributes:
        language: Recognition language tag, e.g. ``en-US``.
        format: Output format name (``txt``, ``json``, ``srt`` or ``vtt``).
        on_device: Prefer on-device recognition.
        output_dir: Directory for batch outputs.
        verbose: Show detailed output.
        show_progress: Show the progress bar even with colors disabled.
        no_color: Disable colored output and progress bars.
    """

    language: Optional[str] = None
    format: Optional[str] = None
    on_device: Optional[bool] = None
    output_dir: Optional[str] = None
    verbose: Optional[bool] = None
    show_progress: Optional[bool] = None
    no_color: Optional[bool] = None

    def merged(self, other: "TranscriberConfig") -> "TranscriberConfig":
        """Return a copy where every field ``other`` sets wins."""
        updates = {
            f.name: getattr(other, f.name)
            for f in fields(self)
            if getattr(other, f.name) is not None
        }
        return replace(self, **updates)

    @classmethod
    def from_mapping(cls, data: dict[str, Any], source: str = "") -> "TranscriberConfig":
        """Build a layer from a parsed config document.

        Unknown keys are ignored; values of the wrong type are treated as
        absent so they cannot override an earlier layer.
        """
        values: dict[str, Any] = {}
        for key, (attr, expected) in FIELD_KEYS.items():
            if key not in data or data[key] is None:
                continue
            value = data[key]
            if not isinstance(value, expected):
                logger.warning(
                    "Ignoring %s in %s: expected %s, got %r",
                    key, source or "config", expected.__name__, value,
                )
                continue
            values[attr] = value
        return cls(**values)

    def to_mapping(self) -> dict[str, Any]:
        """Return the layer using config file keys."""
        return {key: getattr(self, attr) for key, (attr, _) in FIELD_KEYS.items()}


DEFAULT_CONFIG = TranscriberConfig(
    language="en-US",
    format="txt",
    on_device=False,
    output_dir=None,
    verbose=False,
    show_progress=False,
    no_color=False,
)


SAMPLE_YAML = """\
# Transcriber Configuration File
# This file contains default settings for the transcriber CLI tool

# Language code for speech recognition (e.g., en-US, es-ES, fr-FR)
language: "en-US"

# Output format: txt, json, srt, vtt
format: "txt"

# Use on-device recognition (more private, limited languages)
onDevice: false

# Default output directory for batch processing (optional)
# outputDir: "/path/to/output"

# Enable verbose output
verbose: false

# Show progress during transcription
showProgress: false

# Disable colored output and progress bars
noColor: false
"""


def _sample_json() -> str:
    data = {"_comment": "Transcriber Configuration File - Default settings for the transcriber CLI tool"}
    data.update(DEFAULT_CONFIG.to_mapping())
    return json.dumps(data, indent=2, sort_keys=True) + "\n"


class ConfigResolver:
    """
    Resolve the effective configuration from all layers.

    Args:
        home: Home directory to search (defaults to ``Path.home()``).
        cwd: Project directory to search (defaults to ``Path.cwd()``).
    """

    def __init__(self, home: Optional[Path] = None, cwd: Optional[Path] = None):
        self.home = home
        self.cwd = cwd

    def candidate_paths(self, custom_path: Optional[Path] = None) -> list[Path]:
        """Config files to consult, lowest priority first."""
        if custom_path is not None:
            return [Path(custom_path)]

        home = self.home or Path.home()
        cwd = self.cwd or Path.cwd()
        paths = []
        for directory in (home, cwd):
            for ext in (YAML_EXTENSIONS[0], JSON_EXTENSIONS[0]):
                paths.append(directory / f"{CONFIG_FILENAME}{ext}")
        return paths

    def load_file(self, path: Path) -> TranscriberConfig:
        """
        Parse one config file, choosing the format by extension.

        Raises:
            ConfigInvalid: If the file is missing, unreadable, malformed,
                not a mapping, or has an unknown extension.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in YAML_EXTENSIONS + JSON_EXTENSIONS:
            raise ConfigInvalid(f"Unsupported configuration format: {suffix or path.name}")

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigInvalid(f"Cannot read configuration file: {path}", context=str(e)) from e

        try:
            if suffix in YAML_EXTENSIONS:
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            kind = "YAML" if suffix in YAML_EXTENSIONS else "JSON"
            raise ConfigInvalid(f"Invalid {kind} in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigInvalid(f"Configuration in {path} must be a mapping")

        return TranscriberConfig.from_mapping(data, source=str(path))

    def load(self, custom_path: Optional[Path] = None) -> TranscriberConfig:
        """Merge defaults and every config file layer, without overrides."""
        config = DEFAULT_CONFIG

        for path in self.candidate_paths(custom_path):
            if custom_path is not None:
                # The explicit file must exist and parse.
                config = config.merged(self.load_file(path))
                logger.debug("Loaded configuration from %s", path)
                continue

            if not path.is_file():
                continue
            try:
                layer = self.load_file(path)
            except ConfigInvalid as e:
                logger.warning("Skipping configuration file %s: %s", path, e)
                continue
            config = config.merged(layer)
            logger.debug("Loaded configuration from %s", path)

        return config

    def validate(self, config: TranscriberConfig) -> list[str]:
        """Return validation messages; an empty list means the config is valid."""
        errors = []

        if config.format is not None and config.format not in VALID_FORMATS:
            errors.append(
                f"Invalid format '{config.format}'. Valid formats: {', '.join(VALID_FORMATS)}"
            )

        if config.output_dir is not None:
            output_dir = Path(config.output_dir).expanduser()
            if not output_dir.exists() and not output_dir.absolute().parent.exists():
                errors.append(
                    f"Output directory parent does not exist: {output_dir.absolute().parent}"
                )

        return errors

    def resolve(
        self,
        custom_path: Optional[Path] = None,
        overrides: Optional[TranscriberConfig] = None,
    ) -> TranscriberConfig:
        """
        Build the effective configuration.

        Args:
            custom_path: Explicit config file; replaces home/project discovery.
            overrides: Caller-supplied values (e.g. CLI flags), applied last.

        Returns:
            The merged, validated configuration.

        Raises:
            ConfigInvalid: If the custom file cannot be loaded or validation fails.
        """
        config = self.load(custom_path)
        if overrides is not None:
            config = config.merged(overrides)

        errors = self.validate(config)
        if errors:
            raise ConfigInvalid("; ".join(errors))
        return config


def resolve_config(
    custom_path: Optional[Path] = None,
    overrides: Optional[TranscriberConfig] = None,
) -> TranscriberConfig:
    """Resolve the effective configuration using the real home and working directories."""
    return ConfigResolver().resolve(custom_path, overrides)


def generate_sample_config(fmt: str, path: Path) -> Path:
    """
    Write a sample configuration file.

    Args:
        fmt: ``yaml``/``yml`` or ``json``
        path: Destination file; parent directories are created

    Raises:
        ConfigInvalid: If ``fmt`` is not a known configuration format
    """
    fmt = fmt.lower()
    if fmt in ("yaml", "yml"):
        content = SAMPLE_YAML
    elif fmt == "json":
        content = _sample_json()
    else:
        raise ConfigInvalid(f"Unsupported configuration format: {fmt}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
