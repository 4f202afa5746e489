"""Media file discovery and inspection utilities."""

import logging
import shutil
import subprocess
from pathlib import Path

from .backends.base import AudioFormat

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = frozenset({
    ".wav", ".mp3", ".m4a", ".flac", ".ogg", ".aac", ".aiff", ".aif", ".caf", ".wma"
})

VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".mov", ".avi", ".mkv", ".m4v", ".3gp", ".webm"
})

SUPPORTED_EXTENSIONS = AUDIO_EXTENSIONS | VIDEO_EXTENSIONS


def is_video_file(path: Path) -> bool:
    """Check if a file is a video container whose audio must be extracted first."""
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS


def is_supported_media(path: Path) -> bool:
    """Check if a file has a supported audio or video extension."""
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def discover_media_files(paths: list[Path], recursive: bool = False) -> list[Path]:
    """
    Discover audio and video files from a list of paths.

    Args:
        paths: List of file or directory paths
        recursive: If True, search directories recursively

    Returns:
        List of media file paths, sorted alphabetically
    """
    media_files: list[Path] = []

    for path in paths:
        if path.is_file():
            if is_supported_media(path):
                media_files.append(path)
        elif path.is_dir():
            pattern = "**/*" if recursive else "*"
            for file_path in path.glob(pattern):
                if file_path.is_file() and is_supported_media(file_path):
                    media_files.append(file_path)

    # Sort for consistent ordering
    return sorted(set(media_files))


def audio_output_path(video_path: Path, directory: Path, fmt: AudioFormat = AudioFormat.WAV) -> Path:
    """Path of the extracted audio file inside ``directory``, named after the video."""
    return Path(directory) / (Path(video_path).stem + fmt.extension)


def check_ffmpeg() -> bool:
    """Check if ffmpeg is available on the system."""
    return shutil.which("ffmpeg") is not None


def get_audio_duration(path: Path) -> float:
    """
    Get media duration in seconds using ffprobe.

    Returns 0.0 if ffprobe is not available or fails.
    """
    ffprobe = shutil.which("ffprobe")
    if not ffprobe:
        logger.debug("ffprobe not found; duration of %s unknown", path)
        return 0.0

    try:
        result = subprocess.run(
            [
                ffprobe,
                "-v", "quiet",
                "-show_entries", "format=duration",
                "-of", "csv=p=0",
                str(path),
            ],
            capture_output=True,
            text=True,
            timeout=10,
        )
        if result.returncode == 0 and result.stdout.strip():
            return float(result.stdout.strip())
    except (subprocess.TimeoutExpired, ValueError) as e:
        logger.debug("ffprobe failed for %s: %s", path, e)

    return 0.0
