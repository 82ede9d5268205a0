from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache, partial
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from langchain_core.language_models.chat_models import BaseChatModel
from PIL import Image
from pydantic import AliasChoices, BaseModel, Field

from bookworm.agent import build_llm, run_chat, verify_llm
from bookworm.assistant import ReadingAssistant
from bookworm.core.memory import SessionStore
from bookworm.errors import InvalidImageError, LLMError, LLMNotConfiguredError
from bookworm.rooms import create_room_token
from bookworm.speech import Voice, rank_voices
from bookworm.vision.classifier import PageClassifier
from bookworm.vision.detector import BookDetector
from bookworm.vision.images import decode_image
from bookworm.vision.ocr import extract_page_text
from config.settings import Settings, get_settings


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("bookworm")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    settings = get_settings()
    if settings.google_api_key:
        logger.info("LLM API key is configured (model=%s)", settings.gemini_model)
        logger.info("To verify your API key, call GET /api/verify-llm")
    else:
        logger.warning("GOOGLE_API_KEY not found in environment or .env")
    logger.info("LiveKit server expected at %s", settings.livekit_url)
    get_detector()
    yield


app = FastAPI(title="Bookworm Reading Assistant", version="1.0.0", lifespan=lifespan)

# CORS: allow local frontend during development
settings = get_settings()
if settings.is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

sessions = SessionStore()


@lru_cache(maxsize=1)
def get_detector() -> BookDetector:
    try:
        classifier = PageClassifier.from_settings(get_settings())
    except Exception:
        logger.exception("Page classifier could not be loaded; using heuristic detection")
        classifier = None
    if classifier is None:
        logger.info("Book detection: heuristic")
    return BookDetector(classifier)


def _llm_or_none(settings: Settings) -> Optional[BaseChatModel]:
    try:
        return build_llm(settings)
    except LLMNotConfiguredError:
        return None


def _page_reader(settings: Settings) -> Callable[[Image.Image], str]:
    return partial(
        extract_page_text,
        language=settings.ocr_language,
        tesseract_cmd=settings.tesseract_cmd,
    )


def _assistant_for(client_id: str) -> ReadingAssistant:
    settings = get_settings()
    return ReadingAssistant(
        llm=_llm_or_none(settings),
        memory=sessions.get(client_id),
        reader=_page_reader(settings),
    )


def _decode_frame(payload: str) -> Image.Image:
    try:
        return decode_image(payload)
    except InvalidImageError as e:
        raise HTTPException(status_code=400, detail=str(e))


class ChatTurn(BaseModel):
    role: str = Field(..., description="'system', 'user' or 'assistant'")
    content: str


class ChatRequest(BaseModel):
    message: str = Field("", description="User's latest message")
    conversation_history: List[ChatTurn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("conversation_history", "conversationHistory"),
        description="Full conversation so far (frontend-managed)",
    )


class TokenRequest(BaseModel):
    room_name: str = Field(..., validation_alias=AliasChoices("room_name", "roomName"))
    participant_name: str = Field(
        ..., validation_alias=AliasChoices("participant_name", "participantName")
    )


class ClientRequest(BaseModel):
    client_id: str = Field(..., description="Unique identifier for user/session")


class AssistantMessageRequest(ClientRequest):
    text: str = Field(..., description="Recognized speech or typed text")


class ReadPageRequest(ClientRequest):
    image: str = Field(..., description="Camera frame as a data URL or base64 string")
    analyze: bool = Field(True, description="Ask the LLM to discuss the page")


class FrameRequest(BaseModel):
    image: str = Field(..., description="Camera frame as a data URL or base64 string")


class VoiceIn(BaseModel):
    name: str
    lang: str = ""


class VoicesRequest(BaseModel):
    voices: List[VoiceIn] = Field(default_factory=list)


@app.post("/api/ai-chat")
def ai_chat(req: ChatRequest) -> Dict[str, Any]:
    if not req.message or not req.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    settings = get_settings()
    try:
        llm = build_llm(settings)
    except LLMNotConfiguredError as e:
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(
        "Incoming chat: model=%s history_turns=%s message_len=%s",
        settings.gemini_model,
        len(req.conversation_history),
        len(req.message),
    )
    try:
        reply = run_chat(llm, [t.model_dump() for t in req.conversation_history], req.message)
    except LLMError as e:
        logger.error("LLM API error (%s): %s", e.kind, e.detail)
        raise HTTPException(status_code=e.status_code, detail=e.message)

    logger.info("Model responded with %s chars", len(reply.text))
    return {"response": reply.text, "usage": reply.usage}


_VERIFY_ERROR_CODES = {
    "invalid_key": ("Invalid API key. Please check your .env file.", "invalid_key"),
    "quota": ("API key has insufficient quota. Please check billing for your account.", "insufficient_quota"),
    "rate_limit": ("Rate limit exceeded. Please try again later.", "rate_limit"),
}


@app.get("/api/verify-llm")
def verify_llm_key():
    settings = get_settings()
    if not settings.google_api_key:
        return JSONResponse(
            status_code=400,
            content={
                "error": "LLM API key not configured in .env file",
                "configured": False,
                "instructions": "Create a .env file with: GOOGLE_API_KEY=your-actual-key-here",
            },
        )

    try:
        reply = verify_llm(build_llm(settings))
    except LLMError as e:
        logger.error("LLM API key verification error (%s): %s", e.kind, e.detail)
        message, code = _VERIFY_ERROR_CODES.get(e.kind, (e.detail or "Failed to verify API key", "unknown"))
        return JSONResponse(
            status_code=400,
            content={
                "status": "error",
                "configured": True,
                "api_key_valid": False,
                "error": message,
                "error_code": code,
                "instructions": "Check your .env file and ensure GOOGLE_API_KEY is set correctly",
            },
        )

    return {
        "status": "success",
        "configured": True,
        "api_key_valid": True,
        "model": settings.gemini_model,
        "test_response": reply.text,
        "usage": reply.usage,
        "message": "Your LLM API key is working correctly!",
    }


@app.get("/api/health")
def health():
    configured = bool(get_settings().google_api_key)
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "llm_configured": configured,
        "book_detector": "classifier" if get_detector().uses_classifier else "heuristic",
        "message": "API key is configured" if configured else "API key not found in .env file",
    }


@app.post("/api/token")
def room_token(req: TokenRequest) -> Dict[str, str]:
    try:
        return create_room_token(req.room_name, req.participant_name, get_settings())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Error generating token: %s", e)
        raise HTTPException(status_code=500, detail="Failed to generate token")


@app.post("/api/assistant/message")
def assistant_message(req: AssistantMessageRequest) -> Dict[str, Any]:
    assistant = _assistant_for(req.client_id)
    reply = assistant.handle_user_input(req.text)
    logger.info(
        "Assistant message: client_id=%s action=%s history_turns=%s",
        req.client_id,
        reply.action,
        len(assistant.memory),
    )
    return reply.as_dict()


@app.post("/api/assistant/read-page")
def assistant_read_page(req: ReadPageRequest) -> Dict[str, Any]:
    image = _decode_frame(req.image)
    assistant = _assistant_for(req.client_id)
    reply = assistant.read_page(image, analyze=req.analyze)
    body = reply.as_dict()
    body["page_text"] = assistant.memory.current_page_text
    return body


@app.post("/api/assistant/clear")
def assistant_clear(req: ClientRequest) -> Dict[str, Any]:
    return _assistant_for(req.client_id).clear().as_dict()


@app.post("/api/vision/book-confidence")
def book_confidence(req: FrameRequest) -> Dict[str, Any]:
    image = _decode_frame(req.image)
    result = get_detector().detect(image)
    return {
        "confidence": result.confidence,
        "percentage": result.percentage,
        "label": result.label,
        "level": result.level,
        "capture_enabled": result.capture_enabled,
        "text": result.status_text(),
        "source": result.source,
        "book": result.book,
        "no_book": result.no_book,
    }


@app.post("/api/voices/rank")
def voices_rank(req: VoicesRequest) -> Dict[str, Any]:
    ranking = rank_voices([Voice(name=v.name, lang=v.lang) for v in req.voices])
    return {
        "options": [
            {
                "index": option.index,
                "name": option.name,
                "lang": option.lang,
                "preferred": option.preferred,
                "label": option.label,
            }
            for option in ranking.options
        ],
        "default_index": ranking.default_index,
    }
