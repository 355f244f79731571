"""API schemas package"""

from .voice import (
    Intent,
    IntentAction,
    ParseRequest,
    ExecuteRequest,
    ExecuteResponse,
    VoiceErrorResponse,
    TranscribeResponse,
)

__all__ = [
    "Intent",
    "IntentAction",
    "ParseRequest",
    "ExecuteRequest",
    "ExecuteResponse",
    "VoiceErrorResponse",
    "TranscribeResponse",
]
