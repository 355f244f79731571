"""Clients for the speech and language capabilities with circuit breaker pattern"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from crewcommand.config import settings
from crewcommand.exceptions import ExternalServiceError, ParseError, ValidationError
from crewcommand.monitoring.metrics import metrics_collector

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class CircuitBreakerState(str, Enum):
    """Circuit breaker states"""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Circuit breaker pattern implementation for external capabilities"""

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout_seconds: int = 60,
        half_open_max_attempts: int = 3,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout_seconds = recovery_timeout_seconds
        self.half_open_max_attempts = half_open_max_attempts

        self.state = CircuitBreakerState.CLOSED
        self.failure_count = 0
        self.last_failure_time: Optional[datetime] = None
        self.half_open_attempts = 0

    def record_success(self):
        """Record successful request"""
        if self.state == CircuitBreakerState.HALF_OPEN:
            logger.info("Circuit breaker recovery successful, closing circuit")
            self.state = CircuitBreakerState.CLOSED
            self.failure_count = 0
            self.half_open_attempts = 0
        elif self.state == CircuitBreakerState.CLOSED:
            self.failure_count = 0

    def record_failure(self):
        """Record failed request"""
        self.failure_count += 1
        self.last_failure_time = datetime.now(timezone.utc)

        if self.state == CircuitBreakerState.HALF_OPEN:
            self.half_open_attempts += 1
            if self.half_open_attempts >= self.half_open_max_attempts:
                logger.warning("Circuit breaker half-open test failed, reopening circuit")
                self.state = CircuitBreakerState.OPEN
                self.half_open_attempts = 0
        elif self.state == CircuitBreakerState.CLOSED:
            if self.failure_count >= self.failure_threshold:
                logger.warning(
                    f"Circuit breaker threshold reached ({self.failure_count} failures), "
                    "opening circuit"
                )
                self.state = CircuitBreakerState.OPEN

    def can_attempt(self) -> bool:
        """Check if request can be attempted"""
        if self.state == CircuitBreakerState.CLOSED:
            return True

        if self.state == CircuitBreakerState.OPEN:
            if self.last_failure_time:
                elapsed = (datetime.now(timezone.utc) - self.last_failure_time).total_seconds()
                if elapsed >= self.recovery_timeout_seconds:
                    logger.info("Circuit breaker recovery timeout elapsed, entering half-open state")
                    self.state = CircuitBreakerState.HALF_OPEN
                    self.half_open_attempts = 0
                    return True
            return False

        return self.state == CircuitBreakerState.HALF_OPEN

    def get_state(self) -> CircuitBreakerState:
        """Get current circuit breaker state"""
        return self.state


class ExternalClient:
    """Shared plumbing for calls to a remote capability"""

    service_name = "external"
    display_name = "External service"

    def __init__(
        self,
        endpoint: Optional[str],
        api_key: Optional[str],
        timeout_seconds: float,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.endpoint = (endpoint or "").rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.circuit_breaker = circuit_breaker or CircuitBreaker()

    def _ensure_available(self):
        if not self.endpoint or not self.api_key:
            logger.error(f"{self.display_name} is not configured")
            raise ExternalServiceError(
                self.service_name, f"{self.display_name} is not configured", retryable=False
            )

        if not self.circuit_breaker.can_attempt():
            state = self.circuit_breaker.get_state()
            logger.error(f"Circuit breaker is {state.value} for {self.service_name}")
            metrics_collector.record_circuit_breaker_failure(self.service_name)
            raise ExternalServiceError(self.service_name, f"{self.display_name} is temporarily unavailable")

    def _record(self, status: str, start_time: float):
        if status == "success":
            self.circuit_breaker.record_success()
        else:
            self.circuit_breaker.record_failure()
        metrics_collector.record_external_request(
            service=self.service_name,
            status=status,
            duration_seconds=time.time() - start_time,
        )
        metrics_collector.record_circuit_breaker_state(
            self.service_name,
            self.circuit_breaker.get_state().value
        )

    def _translate(self, error: httpx.HTTPError) -> ExternalServiceError:
        """Map a transport or HTTP failure to the domain error"""
        if isinstance(error, httpx.TimeoutException):
            return ExternalServiceError(self.service_name, f"{self.display_name} timed out")
        if isinstance(error, httpx.HTTPStatusError):
            code = error.response.status_code
            return ExternalServiceError(
                self.service_name,
                f"{self.display_name} request failed with status {code}",
                retryable=code == 429 or code >= 500,
            )
        return ExternalServiceError(self.service_name, f"{self.display_name} is unavailable")

    def _read_json(self, response: httpx.Response) -> Dict[str, Any]:
        """
        Decode a 2xx body that must be a JSON object.

        Raises:
            ValueError: If the body is not JSON or not an object
        """
        result = response.json()
        if not isinstance(result, dict):
            raise ValueError(f"expected a JSON object, got {type(result).__name__}")
        return result


class LanguageModelClient(ExternalClient):
    """Client for the Anthropic Messages API"""

    service_name = "language_model"
    display_name = "Language understanding"

    def __init__(
        self,
        endpoint: Optional[str],
        api_key: Optional[str],
        model: str,
        max_tokens: int = 2000,
        timeout_seconds: float = 20.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        super().__init__(endpoint, api_key, timeout_seconds, circuit_breaker)
        self.model = model
        self.max_tokens = max_tokens

    # Only a refused connection is retried: the request never reached the model
    @retry(
        retry=retry_if_exception_type(httpx.ConnectError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        reraise=True,
    )
    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.post(
                f"{self.endpoint}/messages",
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "content-type": "application/json",
                },
                json=payload,
            )
            response.raise_for_status()
            return self._read_json(response)

    async def complete(self, system_prompt: str, user_message: str) -> str:
        """
        Send one system prompt and user turn, returning the first text block.

        Raises:
            ExternalServiceError: If the capability is unconfigured, open-circuited,
                times out, or answers with an HTTP error
            ParseError: If the body is not JSON or carries no text content
        """
        self._ensure_available()

        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_message}],
        }

        start_time = time.time()
        try:
            result = await self._post(payload)
        except httpx.HTTPError as e:
            logger.error(f"Language model request failed: {e}")
            self._record("failed", start_time)
            raise self._translate(e) from e
        except ValueError as e:
            logger.error(f"Language model returned an unreadable body: {e}")
            self._record("failed", start_time)
            raise ParseError("Language model returned an unreadable response") from e

        self._record("success", start_time)

        content = result.get("content")
        block = content[0] if isinstance(content, list) and content else None
        if not isinstance(block, dict) or block.get("type") != "text":
            raise ParseError("Unexpected response type from language model")

        text = block.get("text", "")
        if not isinstance(text, str):
            raise ParseError("Unexpected response type from language model")
        return text


class SpeechToTextClient(ExternalClient):
    """Client for an OpenAI-compatible audio transcription endpoint"""

    service_name = "speech"
    display_name = "Speech recognition"

    def __init__(
        self,
        endpoint: Optional[str],
        api_key: Optional[str],
        model: str = "whisper-1",
        timeout_seconds: float = 15.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        super().__init__(endpoint, api_key, timeout_seconds, circuit_breaker)
        self.model = model

    async def transcribe(self, audio: bytes, filename: str = "audio.webm", content_type: str = "audio/webm") -> str:
        """
        Transcribe captured audio.

        Raises:
            ValidationError: If the audio is empty or contains no speech
            ExternalServiceError: On any transport or HTTP failure, or an unreadable body
        """
        if not audio:
            raise ValidationError("No audio provided")

        self._ensure_available()

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    f"{self.endpoint}/audio/transcriptions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    files={"file": (filename, audio, content_type)},
                    data={"model": self.model},
                )
                response.raise_for_status()
                result = self._read_json(response)
        except httpx.HTTPError as e:
            logger.error(f"Speech recognition request failed: {e}")
            self._record("failed", start_time)
            raise self._translate(e) from e
        except ValueError as e:
            logger.error(f"Speech recognition returned an unreadable body: {e}")
            self._record("failed", start_time)
            raise ExternalServiceError(
                self.service_name, f"{self.display_name} returned an unreadable response"
            ) from e

        self._record("success", start_time)

        text = result.get("text")
        if text is not None and not isinstance(text, str):
            raise ExternalServiceError(
                self.service_name, f"{self.display_name} returned an unreadable response"
            )

        transcript = (text or "").strip()
        if not transcript:
            raise ValidationError("No speech detected. Please try again.")
        return transcript


_language_model_client: Optional[LanguageModelClient] = None
_speech_client: Optional[SpeechToTextClient] = None


def get_language_model_client() -> LanguageModelClient:
    """Process-wide client so the circuit breaker sees every request"""
    global _language_model_client
    if _language_model_client is None:
        _language_model_client = LanguageModelClient(
            endpoint=settings.llm_api_url,
            api_key=settings.llm_api_key,
            model=settings.llm_model,
            max_tokens=settings.llm_max_tokens,
            timeout_seconds=settings.llm_timeout_seconds,
        )
    return _language_model_client


def get_speech_client() -> SpeechToTextClient:
    """Process-wide speech client"""
    global _speech_client
    if _speech_client is None:
        _speech_client = SpeechToTextClient(
            endpoint=settings.speech_api_url,
            api_key=settings.speech_api_key,
            model=settings.speech_model,
            timeout_seconds=settings.speech_timeout_seconds,
        )
    return _speech_client
