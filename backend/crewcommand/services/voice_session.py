"""
Per-user voice command session.

    Idle -> Listening -> Transcribed -> Parsing -> AwaitingConfirmation
         -> Executing -> Completed

Error is reachable from every state; Cancelled from Listening and
AwaitingConfirmation. Waits on speech recognition and language
understanding are bounded, and the in-flight call is cancelled when the
session is cancelled or the app is hidden.
"""

import asyncio
import logging
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Dict, Optional
from uuid import UUID

from crewcommand.config import settings
from crewcommand.exceptions import (
    CrewCommandError,
    ExternalServiceError,
    InvalidStateTransition,
)
from crewcommand.schemas.voice import Intent, IntentAction
from crewcommand.services.authorization import CallerContext
from crewcommand.services.external_clients import SpeechToTextClient
from crewcommand.services.intent_executor import ConfirmedIntent, IntentExecutor, confirm_intent
from crewcommand.services.intent_parser import IntentParser

logger = logging.getLogger(__name__)


class VoiceState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    TRANSCRIBED = "transcribed"
    PARSING = "parsing"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"


# States a new utterance may start from
RESTARTABLE_STATES = {VoiceState.IDLE, VoiceState.COMPLETED, VoiceState.ERROR, VoiceState.CANCELLED}
CANCELLABLE_STATES = {VoiceState.LISTENING, VoiceState.AWAITING_CONFIRMATION}

UNEXPECTED_ERROR_MESSAGE = "Failed to process voice command"


class VoiceSession:
    """Drives one spoken command from capture to execution"""

    def __init__(
        self,
        ctx: CallerContext,
        parser: IntentParser,
        executor: IntentExecutor,
        client_date: date,
        speech_client: Optional[SpeechToTextClient] = None,
        job_site_id: Optional[UUID] = None,
        transcribe_timeout: Optional[float] = None,
        parse_timeout: Optional[float] = None,
    ):
        self.ctx = ctx
        self.parser = parser
        self.executor = executor
        self.speech_client = speech_client
        self.client_date = client_date
        self.job_site_id = job_site_id
        self.transcribe_timeout = transcribe_timeout or settings.speech_timeout_seconds
        self.parse_timeout = parse_timeout or settings.llm_timeout_seconds

        self.state = VoiceState.IDLE
        self.transcript: Optional[str] = None
        self.intent: Optional[Intent] = None
        self.confirmed: Optional[ConfirmedIntent] = None
        self.result: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None
        self._inflight: Optional[asyncio.Task] = None

    def _require(self, *states: VoiceState):
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidStateTransition(
                f"Cannot do that while {self.state.value}; expected one of: {allowed}"
            )

    def _fail(self, error: Exception) -> Exception:
        self.state = VoiceState.ERROR
        if isinstance(error, CrewCommandError):
            self.error = error.detail
            logger.info(f"Voice session for user {self.ctx.user_id} failed: {error.detail}")
        else:
            self.error = UNEXPECTED_ERROR_MESSAGE
            logger.exception(f"Voice session for user {self.ctx.user_id} failed unexpectedly: {error}")
        return error

    async def _bounded(self, awaitable: Awaitable, timeout: float, service: str, label: str):
        """Await an external call with a deadline, keeping a handle so it can be cancelled"""
        self._inflight = asyncio.ensure_future(asyncio.wait_for(awaitable, timeout))
        try:
            return await self._inflight
        except asyncio.TimeoutError:
            raise self._fail(ExternalServiceError(service, f"{label} timed out"))
        finally:
            self._inflight = None

    def start_listening(self):
        """Begin capturing a new utterance"""
        self._require(*RESTARTABLE_STATES)
        self.transcript = None
        self.intent = None
        self.confirmed = None
        self.result = None
        self.error = None
        self.state = VoiceState.LISTENING

    async def capture(self, audio: bytes, filename: str = "audio.webm", content_type: str = "audio/webm") -> Optional[str]:
        """
        Transcribe captured audio.

        Returns:
            The transcript, or None if the session was cancelled meanwhile
        """
        self._require(VoiceState.LISTENING)
        if self.speech_client is None:
            raise self._fail(ExternalServiceError("speech", "Speech recognition is not configured", retryable=False))

        try:
            transcript = await self._bounded(
                self.speech_client.transcribe(audio, filename, content_type),
                self.transcribe_timeout,
                "speech",
                "Speech recognition",
            )
        except asyncio.CancelledError:
            if self.state == VoiceState.CANCELLED:
                return None
            raise
        except Exception as e:
            if self.state != VoiceState.ERROR:
                self._fail(e)
            raise

        return self.provide_transcript(transcript)

    def provide_transcript(self, transcript: str) -> str:
        """Accept text recognized on the device instead of uploaded audio"""
        self._require(VoiceState.LISTENING)
        self.transcript = transcript.strip()
        self.state = VoiceState.TRANSCRIBED
        return self.transcript

    async def parse(self) -> Intent:
        """
        Interpret the transcript.

        A clarify intent moves the session to Error: the user must speak
        again with the ambiguity resolved.
        """
        self._require(VoiceState.TRANSCRIBED)
        self.state = VoiceState.PARSING

        try:
            intent = await self._bounded(
                self.parser.parse(self.transcript, self.client_date),
                self.parse_timeout,
                "language_model",
                "Language understanding",
            )
        except Exception as e:
            if self.state != VoiceState.ERROR:
                self._fail(e)
            raise

        self.intent = intent
        if intent.action == IntentAction.CLARIFY:
            self.state = VoiceState.ERROR
            self.error = intent.question
            return intent

        self.state = VoiceState.AWAITING_CONFIRMATION
        return intent

    def confirm(self) -> ConfirmedIntent:
        """The user accepted the summary"""
        self._require(VoiceState.AWAITING_CONFIRMATION)
        self.confirmed = confirm_intent(self.intent, self.ctx, self.client_date, self.job_site_id)
        return self.confirmed

    async def execute(self) -> Dict[str, Any]:
        """Apply the confirmed intent"""
        self._require(VoiceState.AWAITING_CONFIRMATION)
        if self.confirmed is None:
            raise InvalidStateTransition("Confirm the command before running it")

        self.state = VoiceState.EXECUTING
        try:
            self.result = await self.executor.execute(self.confirmed, self.ctx)
        except Exception as e:
            self._fail(e)
            raise

        self.state = VoiceState.COMPLETED
        return self.result

    def cancel(self):
        """Dismiss the command, aborting any in-flight capture"""
        self._require(*CANCELLABLE_STATES)
        self.state = VoiceState.CANCELLED
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        logger.debug(f"Voice session for user {self.ctx.user_id} cancelled")

    def on_visibility_change(self, visible: bool):
        """Hidden apps must release the microphone immediately"""
        if not visible and self.state == VoiceState.LISTENING:
            self.cancel()
