"""
Voice command endpoints.

parse never mutates anything. execute is only called after the user has
confirmed the summary in the client; the request itself is the
confirmation.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from crewcommand.api.dependencies import get_authorization_service, get_caller_context
from crewcommand.database import get_db
from crewcommand.schemas.voice import (
    ExecuteRequest,
    ExecuteResponse,
    Intent,
    ParseRequest,
    TranscribeResponse,
    VoiceErrorResponse,
)
from crewcommand.services.authorization import AuthorizationService, CallerContext
from crewcommand.services.external_clients import (
    LanguageModelClient,
    SpeechToTextClient,
    get_language_model_client,
    get_speech_client,
)
from crewcommand.services.intent_executor import IntentExecutor, confirm_intent
from crewcommand.services.intent_parser import IntentParser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/voice", tags=["Voice"])

ERROR_RESPONSES = {
    400: {"model": VoiceErrorResponse},
    401: {"model": VoiceErrorResponse},
    403: {"model": VoiceErrorResponse},
    404: {"model": VoiceErrorResponse},
    502: {"model": VoiceErrorResponse},
    503: {"model": VoiceErrorResponse},
}


@router.post("/transcribe", response_model=TranscribeResponse, responses=ERROR_RESPONSES)
async def transcribe(
    audio: UploadFile = File(...),
    ctx: CallerContext = Depends(get_caller_context),
    speech_client: SpeechToTextClient = Depends(get_speech_client),
):
    """Convert an uploaded recording to text"""
    content = await audio.read()
    transcript = await speech_client.transcribe(
        content,
        filename=audio.filename or "audio.webm",
        content_type=audio.content_type or "audio/webm",
    )
    logger.info(f"Transcribed {len(content)} bytes of audio for user {ctx.user_id}")
    return TranscribeResponse(transcript=transcript)


@router.post("/parse", response_model=Intent, response_model_exclude_none=True, responses=ERROR_RESPONSES)
async def parse(
    body: ParseRequest,
    ctx: CallerContext = Depends(get_caller_context),
    llm_client: LanguageModelClient = Depends(get_language_model_client),
):
    """
    Interpret a transcript into an Intent.

    Relative dates are anchored to clientDate, the caller's local date.
    """
    parser = IntentParser(llm_client)
    return await parser.parse(body.transcript, body.client_date)


@router.post(
    "/execute",
    response_model=ExecuteResponse,
    status_code=status.HTTP_200_OK,
    responses={**ERROR_RESPONSES, 500: {"model": VoiceErrorResponse}},
)
async def execute(
    body: ExecuteRequest,
    ctx: CallerContext = Depends(get_caller_context),
    authz: AuthorizationService = Depends(get_authorization_service),
    db: AsyncSession = Depends(get_db),
):
    """Apply a confirmed intent"""
    confirmed = confirm_intent(body.intent, ctx, body.client_date, body.job_site_id)
    result = await IntentExecutor(db, authz).execute(confirmed, ctx)
    return ExecuteResponse(success=True, message=body.intent.summary, data=result)
