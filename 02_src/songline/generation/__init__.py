"""Song generation module."""

from .gate import GenerationGate
from .minimax import AUDIO_MIME_TYPE, IMusicGenerator, MiniMaxGenerator, SynthesisResult
from .pipeline import ArtifactPipeline, IArtifactPipeline

__all__ = [
    "GenerationGate",
    "IMusicGenerator",
    "MiniMaxGenerator",
    "SynthesisResult",
    "AUDIO_MIME_TYPE",
    "ArtifactPipeline",
    "IArtifactPipeline",
]
