"""
EduBoost Gateway — Study Tool Routes
=====================================

What:  The three AI-backed endpoints: summary, flashcards, podcast audio.
How:   Router-level require_auth runs first; each handler then validates its
       single text field and delegates to the LLMService.

Route Inventory:
    POST /summarize   {content} → {summary}
    POST /flashcards  {content} → {flashcards: [{id, question, answer}]}
    POST /podcast     {text}    → {audioDataUrl}

Routes stay thin: error classification lives in the service, error
formatting in the global exception handlers.
"""

import logging

from fastapi import APIRouter, Depends

from eduboost.config import Settings
from eduboost.dependencies import AuthContext, get_llm_service, get_settings, json_body, require_auth
from eduboost.schemas.api import ErrorResponse, FlashcardsResponse, PodcastResponse, SummaryResponse
from eduboost.services.llm_base import LLMService
from eduboost.services.validation import require_text

logger = logging.getLogger(__name__)

_ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Missing or expired session", "model": ErrorResponse},
    429: {"description": "Rate limit exceeded (gateway or upstream)", "model": ErrorResponse},
    502: {"description": "Upstream AI failure", "model": ErrorResponse},
}

router = APIRouter(tags=["Study"], dependencies=[Depends(require_auth)], responses=_ERRORS)


@router.post("/summarize", response_model=SummaryResponse, summary="Summarize course content")
async def summarize(
    body=Depends(json_body),
    auth: AuthContext = Depends(require_auth),
    settings: Settings = Depends(get_settings),
    llm: LLMService = Depends(get_llm_service),
) -> SummaryResponse:
    content = require_text(body, "content", settings.max_content_length)
    logger.info("Summarize request: role=%s, %d chars", auth.role, len(content))
    return SummaryResponse(summary=await llm.summarize(content))


@router.post("/flashcards", response_model=FlashcardsResponse, summary="Generate flashcards")
async def flashcards(
    body=Depends(json_body),
    settings: Settings = Depends(get_settings),
    llm: LLMService = Depends(get_llm_service),
) -> FlashcardsResponse:
    content = require_text(body, "content", settings.max_content_length)
    cards = await llm.generate_flashcards(content)
    logger.info("Generated %d flashcards from %d chars", len(cards), len(content))
    return FlashcardsResponse(flashcards=cards)


@router.post("/podcast", response_model=PodcastResponse, summary="Read a summary aloud")
async def podcast(
    body=Depends(json_body),
    settings: Settings = Depends(get_settings),
    llm: LLMService = Depends(get_llm_service),
) -> PodcastResponse:
    text = require_text(body, "text", settings.max_podcast_text_length)
    return PodcastResponse(audio_data_url=await llm.synthesize_speech(text))
