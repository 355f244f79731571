"""Services package"""

from .auth_service import AuthService
from .authorization import AuthorizationService, CallerContext, ResourceRef, Action, decide
from .intent_executor import IntentExecutor, ConfirmedIntent, confirm_intent
from .intent_parser import IntentParser
from .scheduling_service import SchedulingService
from .voice_session import VoiceSession, VoiceState

__all__ = [
    "AuthService",
    "AuthorizationService",
    "CallerContext",
    "ResourceRef",
    "Action",
    "decide",
    "IntentExecutor",
    "ConfirmedIntent",
    "confirm_intent",
    "IntentParser",
    "SchedulingService",
    "VoiceSession",
    "VoiceState",
]
