"""
Capture module - Live speech capture, transcript buffering, and lifecycle control.
"""

from .base import BaseSpeechSource, RecognitionEvent
from .buffer import TranscriptBuffer
from .controller import RecognitionController
from .relay import RelayedSpeechSource

__all__ = [
    "BaseSpeechSource",
    "RecognitionController",
    "RecognitionEvent",
    "RelayedSpeechSource",
    "TranscriptBuffer",
]
