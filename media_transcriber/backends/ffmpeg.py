"""FFmpeg media transcoder.

Implements the MediaTranscoder protocol with ffmpeg-python:
- ``ffmpeg.probe`` for audio track counts and durations
- ``amix`` at equal gain when a container has several audio tracks
- ``-progress pipe:1`` parsing for fractional progress
"""

import logging
import subprocess
from collections.abc import Iterator
from pathlib import Path

import ffmpeg

from ..audio import check_ffmpeg
from ..errors import MediaEngineError
from .base import (
    AudioFormat,
    TranscodeEvent,
    TranscodeRequest,
    TranscodeStatus,
)

logger = logging.getLogger(__name__)

# Output arguments per target format
OUTPUT_ARGS: dict[AudioFormat, dict[str, str]] = {
    AudioFormat.WAV: {"format": "wav", "acodec": "pcm_s16le"},
    AudioFormat.M4A: {"format": "ipod", "acodec": "aac"},
    AudioFormat.AIFF: {"format": "aiff", "acodec": "pcm_s16be"},
}


def probe_media(path: Path) -> dict:
    """Run ffprobe on ``path`` and return its parsed output."""
    try:
        return ffmpeg.probe(str(path))
    except ffmpeg.Error as e:
        error_msg = e.stderr.decode(errors="replace") if e.stderr else str(e)
        raise MediaEngineError(error_msg.strip() or "ffprobe failed", context=str(path)) from e
    except OSError as e:
        # ffprobe missing from PATH or not executable
        raise MediaEngineError(f"Cannot run ffprobe: {e}", context=str(path)) from e


def _parse_progress_line(line: str) -> tuple[str, str] | None:
    key, sep, value = line.strip().partition("=")
    if not sep:
        return None
    return key, value


class FfmpegSession:
    """One running ffmpeg extraction."""

    def __init__(self, request: TranscodeRequest, duration: float):
        self.request = request
        self.duration = duration
        self._process: subprocess.Popen | None = None
        self._cancelled = False

    def build(self):
        """Build the ffmpeg-python output node for this request."""
        source = ffmpeg.input(str(self.request.source))
        count = self.request.track_count

        if count > 1:
            tracks = [source[f"a:{i}"] for i in range(count)]
            audio = ffmpeg.filter(
                tracks,
                "amix",
                inputs=count,
                duration="longest",
                weights=" ".join(["1"] * count),
                normalize=0,
            )
        else:
            audio = source["a:0"]

        return (
            ffmpeg.output(audio, str(self.request.target), **OUTPUT_ARGS[self.request.format])
            .global_args("-progress", "pipe:1", "-nostats", "-loglevel", "error")
            .overwrite_output()
        )

    def run(self) -> Iterator[TranscodeEvent]:
        try:
            self._process = self.build().run_async(pipe_stdout=True, pipe_stderr=True)
        except (OSError, ffmpeg.Error) as e:
            yield TranscodeEvent(TranscodeStatus.FAILED, message=str(e))
            return

        process = self._process
        for raw in process.stdout:
            parsed = _parse_progress_line(raw.decode(errors="replace"))
            if parsed is None:
                continue
            key, value = parsed
            if key in ("out_time_us", "out_time_ms") and self.duration > 0:
                try:
                    # Both keys carry microseconds.
                    seconds = int(value) / 1_000_000
                except ValueError:
                    continue
                yield TranscodeEvent(
                    TranscodeStatus.PROGRESS,
                    fraction=min(seconds / self.duration, 1.0),
                )
            elif key == "progress" and value == "end":
                yield TranscodeEvent(TranscodeStatus.PROGRESS, fraction=1.0)

        returncode = process.wait()
        stderr = process.stderr.read().decode(errors="replace").strip() if process.stderr else ""

        if self._cancelled:
            yield TranscodeEvent(TranscodeStatus.CANCELLED)
        elif returncode == 0:
            yield TranscodeEvent(TranscodeStatus.COMPLETED, fraction=1.0)
        else:
            logger.error("ffmpeg exited with %d: %s", returncode, stderr)
            yield TranscodeEvent(
                TranscodeStatus.FAILED,
                message=stderr or f"ffmpeg exited with status {returncode}",
            )

    def cancel(self) -> None:
        self._cancelled = True
        if self._process is not None and self._process.poll() is None:
            self._process.terminate()


class FfmpegTranscoder:
    """MediaTranscoder backed by the ffmpeg command-line tools."""

    def audio_track_count(self, path: Path) -> int:
        info = probe_media(path)
        return sum(1 for s in info.get("streams", []) if s.get("codec_type") == "audio")

    def supports_format(self, fmt: AudioFormat) -> bool:
        return fmt in OUTPUT_ARGS

    def create_session(self, request: TranscodeRequest) -> FfmpegSession | None:
        if not check_ffmpeg():
            logger.error("ffmpeg not found in PATH")
            return None

        info = probe_media(request.source)
        try:
            duration = float(info.get("format", {}).get("duration", 0.0))
        except (TypeError, ValueError):
            duration = 0.0
        return FfmpegSession(request, duration)
