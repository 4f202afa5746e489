"""Transcribe audio and video files to text, JSON, SRT or WebVTT."""

__version__ = "1.0.1"
