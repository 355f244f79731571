"""Turns a transcript into a validated Intent through the language model"""

import json
import logging
import re
from datetime import date, timedelta
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from crewcommand.config import settings
from crewcommand.exceptions import ParseError
from crewcommand.monitoring.metrics import metrics_collector
from crewcommand.schemas.voice import PAYLOAD_MODELS, Intent, IntentAction
from crewcommand.services.external_clients import LanguageModelClient

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"^```[a-zA-Z]*\s*")
_CLOSING_FENCE = re.compile(r"\s*```$")


SYSTEM_PROMPT_TEMPLATE = """You interpret spoken commands for CrewCommand, a construction crew scheduling app used by superintendents and foremen in the field.

Turn each command into one structured action.

CONTEXT:
- Speakers are on noisy job sites and talk casually ("move Jose to concrete")
- Worker and task names are often partial ("Jose" may mean "Jose Martinez"); repeat them exactly as spoken
- Dates are usually relative ("tomorrow", "Monday", "next week", "rest of this week")
- Current date: {today}
- Tomorrow's date: {tomorrow}

ACTIONS AND THEIR DATA:

1. reassign_worker: move a worker onto another task
   data: {{"worker_name": str, "to_task_name": str, "from_task_name": str?, "dates": [str]}}
   Example: "Move Jose to concrete pour tomorrow"

2. create_task: create a new task with crew requirements
   data: {{"task_name": str, "location": str?, "job_site_name": str?, "start_date": str?, "end_date": str?,
          "required_operators": int?, "required_laborers": int?, "required_carpenters": int?,
          "required_masons": int?, "notes": str?}}
   Example: "Create a framing task at the north tower next week, 2 carpenters"

3. query_info: answer where a worker is scheduled
   data: {{"query_type": "worker_location", "worker_name": str, "date": str?}}
   Example: "Where is Panama today?"

4. update_timesheet: change hours or status of a worker's assignment
   data: {{"worker_name": str, "date": str?, "hours": number?, "status": "assigned" | "completed" | "reassigned"?}}
   Example: "Panama worked 10 hours Thursday"

5. approve_request: approve a foreman's pending reassignment request
   data: {{"worker_name": str}}
   Example: "Approve Carlos's request"

RULES:
- Dates may be ISO dates (YYYY-MM-DD) or the spoken phrase ("tomorrow", "friday", "next week")
- Only include hours when the speaker gives them
- If your confidence is below {threshold}, answer with the clarify action instead of guessing
- Be lenient with casual phrasing

OUTPUT FORMAT (respond with ONLY JSON, no other text):
{{
  "action": "reassign_worker" | "create_task" | "query_info" | "update_timesheet" | "approve_request",
  "confidence": 0.0 to 1.0,
  "data": {{ ... }},
  "summary": "Human-readable summary of what will happen",
  "needs_confirmation": true
}}

When unclear or below {threshold} confidence:
{{
  "action": "clarify",
  "confidence": 0.0 to 1.0,
  "question": "Did you mean Jose Martinez or Jose Silva?",
  "options": ["Jose Martinez", "Jose Silva"]
}}"""


def build_system_prompt(today: date, threshold: float = 0.7) -> str:
    """System prompt anchored to the caller's local date"""
    return SYSTEM_PROMPT_TEMPLATE.format(
        today=today.isoformat(),
        tomorrow=(today + timedelta(days=1)).isoformat(),
        threshold=threshold,
    )


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one"""
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned)
    return cleaned.strip()


class IntentParser:
    """
    Stage A of the voice pipeline.

    The model's answer must decode to an Intent, carry a payload valid for
    its action, and clear the confidence threshold unless it is a clarify.
    Anything else is a ParseError; nothing is defaulted.
    """

    def __init__(self, client: LanguageModelClient, confidence_threshold: Optional[float] = None):
        self.client = client
        self.confidence_threshold = (
            settings.clarify_confidence_threshold
            if confidence_threshold is None
            else confidence_threshold
        )

    async def parse(self, transcript: str, client_date: date) -> Intent:
        """
        Interpret one utterance.

        Args:
            transcript: Raw utterance text
            client_date: Caller's local date; relative dates resolve against it

        Returns:
            A validated Intent (possibly a clarify)

        Raises:
            ParseError: If the model output does not satisfy the contract
            ExternalServiceError: If the language model is unavailable
        """
        system_prompt = build_system_prompt(client_date, self.confidence_threshold)
        raw = await self.client.complete(system_prompt, transcript)

        try:
            intent = self.decode(raw)
        except ParseError:
            metrics_collector.record_parse(action="unknown", status="invalid")
            raise

        metrics_collector.record_parse(
            action=intent.action.value,
            status="clarify" if intent.action == IntentAction.CLARIFY else "success",
            confidence=intent.confidence,
        )
        logger.info(f"Parsed {intent.action.value} intent (confidence {intent.confidence:.2f})")
        return intent

    def decode(self, raw: str) -> Intent:
        """Validate raw model text against the Intent contract"""
        text = strip_code_fences(raw)

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Language model returned non-JSON output: {text[:200]!r}")
            raise ParseError(f"Language model returned invalid JSON: {e.msg}")

        if not isinstance(payload, dict):
            raise ParseError("Language model output is not a JSON object")

        try:
            intent = Intent.model_validate(payload)
        except PydanticValidationError as e:
            raise ParseError(
                "Language model output does not match the intent format",
                details={"errors": _describe(e)},
            )

        if intent.action == IntentAction.CLARIFY:
            return intent

        if intent.confidence < self.confidence_threshold:
            raise ParseError(
                f"Language model returned {intent.action.value} with confidence "
                f"{intent.confidence:.2f} instead of asking for clarification"
            )

        try:
            PAYLOAD_MODELS[intent.action].model_validate(intent.data)
        except PydanticValidationError as e:
            raise ParseError(
                f"Language model returned an invalid {intent.action.value} payload",
                details={"errors": _describe(e)},
            )

        return intent


def _describe(error: PydanticValidationError) -> list:
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]
