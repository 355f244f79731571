"""Unit tests for the speech and language clients and the circuit breaker"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from crewcommand.exceptions import ExternalServiceError, ParseError, ValidationError
from crewcommand.services.external_clients import (
    CircuitBreaker,
    CircuitBreakerState,
    LanguageModelClient,
    SpeechToTextClient,
)


def llm_client(**kwargs):
    return LanguageModelClient(
        endpoint="https://llm.test/v1",
        api_key="test-key",
        model="test-model",
        timeout_seconds=5.0,
        **kwargs,
    )


def text_response(text):
    response = Mock()
    response.raise_for_status = Mock()
    response.json.return_value = {"content": [{"type": "text", "text": text}]}
    return response


class TestCircuitBreaker:
    """Tests for CircuitBreaker pattern"""

    def test_circuit_breaker_initialization(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout_seconds=60)

        assert cb.state == CircuitBreakerState.CLOSED
        assert cb.failure_count == 0
        assert cb.can_attempt() is True

    def test_circuit_breaker_opens_after_threshold(self):
        cb = CircuitBreaker(failure_threshold=3)

        for _ in range(3):
            cb.record_failure()

        assert cb.state == CircuitBreakerState.OPEN
        assert cb.can_attempt() is False

    def test_circuit_breaker_resets_on_success(self):
        cb = CircuitBreaker(failure_threshold=5)

        cb.record_failure()
        cb.record_failure()
        cb.record_success()

        assert cb.failure_count == 0
        assert cb.state == CircuitBreakerState.CLOSED

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout_seconds=30)
        cb.record_failure()
        cb.last_failure_time = datetime.now(timezone.utc) - timedelta(seconds=31)

        assert cb.can_attempt() is True
        assert cb.state == CircuitBreakerState.HALF_OPEN

        cb.record_success()
        assert cb.state == CircuitBreakerState.CLOSED


@pytest.mark.asyncio
class TestLanguageModelClient:
    """Messages API calls"""

    async def test_complete_success(self):
        client = llm_client()

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=text_response('{"action": "clarify"}'))
            mock_client.return_value.__aenter__.return_value.post = post

            text = await client.complete("system prompt", "move jose")

        assert text == '{"action": "clarify"}'
        url = post.call_args.args[0]
        kwargs = post.call_args.kwargs
        assert url == "https://llm.test/v1/messages"
        assert kwargs["headers"]["x-api-key"] == "test-key"
        assert kwargs["json"]["system"] == "system prompt"
        assert kwargs["json"]["messages"] == [{"role": "user", "content": "move jose"}]

    async def test_timeout_is_retryable_service_error(self):
        client = llm_client()

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ReadTimeout("timed out")
            )

            with pytest.raises(ExternalServiceError) as exc_info:
                await client.complete("system", "hello")

        assert "timed out" in exc_info.value.detail
        assert exc_info.value.retryable is True
        assert client.circuit_breaker.failure_count == 1

    async def test_connect_error_retried_once(self):
        client = llm_client()

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(side_effect=[httpx.ConnectError("refused"), text_response("ok")])
            mock_client.return_value.__aenter__.return_value.post = post

            text = await client.complete("system", "hello")

        assert text == "ok"
        assert post.call_count == 2

    async def test_client_error_not_retryable(self):
        client = llm_client()
        response = Mock(status_code=400)
        error = httpx.HTTPStatusError("bad request", request=Mock(), response=response)
        bad = Mock()
        bad.raise_for_status = Mock(side_effect=error)

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=bad)
            mock_client.return_value.__aenter__.return_value.post = post

            with pytest.raises(ExternalServiceError) as exc_info:
                await client.complete("system", "hello")

        assert exc_info.value.retryable is False
        assert "400" in exc_info.value.detail
        assert post.call_count == 1

    async def test_non_text_content_is_parse_error(self):
        client = llm_client()
        response = Mock()
        response.raise_for_status = Mock()
        response.json.return_value = {"content": [{"type": "tool_use", "input": {}}]}

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)

            with pytest.raises(ParseError):
                await client.complete("system", "hello")

    async def test_non_json_body_is_parse_error(self):
        client = llm_client()
        response = Mock()
        response.raise_for_status = Mock()
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=response)
            mock_client.return_value.__aenter__.return_value.post = post

            with pytest.raises(ParseError) as exc_info:
                await client.complete("system", "hello")

        assert "unreadable response" in exc_info.value.detail
        assert post.call_count == 1
        assert client.circuit_breaker.failure_count == 1

    @pytest.mark.parametrize("body", [
        [{"type": "text", "text": "hi"}],
        {"content": "hi"},
        {"content": ["hi"]},
        {"content": [{"type": "text", "text": None}]},
    ])
    async def test_malformed_body_is_parse_error(self, body):
        client = llm_client()
        response = Mock()
        response.raise_for_status = Mock()
        response.json.return_value = body

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)

            with pytest.raises(ParseError):
                await client.complete("system", "hello")

    async def test_open_circuit_short_circuits(self):
        client = llm_client(circuit_breaker=CircuitBreaker(failure_threshold=1, recovery_timeout_seconds=60))

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))
            mock_client.return_value.__aenter__.return_value.post = post

            with pytest.raises(ExternalServiceError):
                await client.complete("system", "hello")

            with pytest.raises(ExternalServiceError) as exc_info:
                await client.complete("system", "hello")

        assert "temporarily unavailable" in exc_info.value.detail
        assert post.call_count == 1

    async def test_unconfigured_client(self):
        client = LanguageModelClient(endpoint="https://llm.test/v1", api_key=None, model="m")

        with pytest.raises(ExternalServiceError) as exc_info:
            await client.complete("system", "hello")

        assert exc_info.value.retryable is False
        assert exc_info.value.details == {"service": "language_model", "retryable": False}


@pytest.mark.asyncio
class TestSpeechToTextClient:
    """Audio transcription calls"""

    def client(self):
        return SpeechToTextClient(endpoint="https://speech.test/v1", api_key="speech-key")

    async def test_transcribe_success(self):
        response = Mock()
        response.raise_for_status = Mock()
        response.json.return_value = {"text": "  move Jose to concrete tomorrow "}

        with patch("httpx.AsyncClient") as mock_client:
            post = AsyncMock(return_value=response)
            mock_client.return_value.__aenter__.return_value.post = post

            transcript = await self.client().transcribe(b"audio-bytes")

        assert transcript == "move Jose to concrete tomorrow"
        assert post.call_args.args[0] == "https://speech.test/v1/audio/transcriptions"
        assert post.call_args.kwargs["data"] == {"model": "whisper-1"}

    async def test_empty_audio(self):
        with pytest.raises(ValidationError):
            await self.client().transcribe(b"")

    async def test_no_speech_detected(self):
        response = Mock()
        response.raise_for_status = Mock()
        response.json.return_value = {"text": "   "}

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)

            with pytest.raises(ValidationError) as exc_info:
                await self.client().transcribe(b"silence")

        assert "No speech detected" in exc_info.value.detail

    async def test_server_error_is_retryable(self):
        response = Mock(status_code=503)
        error = httpx.HTTPStatusError("unavailable", request=Mock(), response=response)
        bad = Mock()
        bad.raise_for_status = Mock(side_effect=error)

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=bad)

            with pytest.raises(ExternalServiceError) as exc_info:
                await self.client().transcribe(b"audio")

        assert exc_info.value.retryable is True
        assert exc_info.value.detail.endswith("Please try again.")

    async def test_non_json_body_is_service_error(self):
        client = self.client()
        response = Mock()
        response.raise_for_status = Mock()
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)

            with pytest.raises(ExternalServiceError) as exc_info:
                await client.transcribe(b"audio")

        assert "unreadable response" in exc_info.value.detail
        assert client.circuit_breaker.failure_count == 1

    @pytest.mark.parametrize("body", [["move jose"], "move jose", {"text": ["move jose"]}])
    async def test_malformed_body_is_service_error(self, body):
        response = Mock()
        response.raise_for_status = Mock()
        response.json.return_value = body

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(return_value=response)

            with pytest.raises(ExternalServiceError):
                await self.client().transcribe(b"audio")
