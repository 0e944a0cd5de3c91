"""Dialogue module."""

from .engine import DialogueEngine, IDialogueEngine, build_transcript
from .tools import GENERATE_SONG_TOOL, parse_generation_request

__all__ = [
    "DialogueEngine",
    "IDialogueEngine",
    "build_transcript",
    "GENERATE_SONG_TOOL",
    "parse_generation_request",
]
