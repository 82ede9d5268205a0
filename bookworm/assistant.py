from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from PIL import Image

from bookworm.agent import run_chat
from bookworm.core.commands import is_read_page_command
from bookworm.core.memory import ConversationMemory
from bookworm.core.prompt import GREETING, page_analysis_prompt
from bookworm.errors import LLMError, OCRError
from bookworm.speech import prepare_speech_text
from bookworm.vision.ocr import extract_page_text, has_readable_text


logger = logging.getLogger("bookworm.assistant")

READ_PAGE_NOTICE = "I heard you want me to read a page! Let me capture and analyze it for you."
READING_NOTICE = "Reading page from your book..."
READY_OCR_STATUS = 'Ready to read and analyze books! Position a page in the camera and say "read this page".'

# Spoken when a chat completion fails, keyed by LLMError.kind.
LLM_FAILURE_MESSAGES = {
    "invalid_key": "API key is invalid. Please check your configuration.",
    "quota": "API quota exceeded. Please check your billing.",
    "unavailable": "Server error. Please try again later.",
}
GENERIC_FAILURE_MESSAGE = "I'm sorry, I encountered an error processing your request. Please try again."
NOT_CONFIGURED_MESSAGE = "I can't connect to the AI service. Please make sure it is configured."


@dataclass(frozen=True)
class ChatMessage:
    sender: str  # user | ai | system | book
    text: str


@dataclass(frozen=True)
class StatusUpdate:
    text: str
    kind: str


@dataclass
class AssistantReply:
    action: str = "reply"  # reply | capture_page | none
    messages: List[ChatMessage] = field(default_factory=list)
    speak: Optional[str] = None
    status: Optional[StatusUpdate] = None
    ocr_status: Optional[StatusUpdate] = None

    @property
    def speech_text(self) -> Optional[str]:
        return prepare_speech_text(self.speak) if self.speak else None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "messages": [{"sender": m.sender, "text": m.text} for m in self.messages],
            "speech_text": self.speech_text,
            "status": _status_dict(self.status),
            "ocr_status": _status_dict(self.ocr_status),
        }


def _status_dict(status: Optional[StatusUpdate]) -> Optional[Dict[str, str]]:
    if status is None:
        return None
    return {"text": status.text, "type": status.kind}


def _one_at_a_time(method):
    """Run an assistant operation while holding its conversation's lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.memory.lock:
            return method(self, *args, **kwargs)

    return wrapper


class ReadingAssistant:
    """Conversation controller for one reader.

    Decides what to say for each utterance or captured page. The browser does
    the listening, speaking and rendering; this class only mutates memory and
    returns what should be shown and spoken.
    """

    def __init__(
        self,
        llm: Optional[BaseChatModel],
        memory: ConversationMemory,
        reader: Callable[[Image.Image], str] = extract_page_text,
    ) -> None:
        self.llm = llm
        self.memory = memory
        self.reader = reader

    @_one_at_a_time
    def handle_user_input(self, text: str) -> AssistantReply:
        text = (text or "").strip()
        if not text:
            return AssistantReply(action="none")

        history = self.memory.as_history()
        self.memory.add("user", text)
        user_message = ChatMessage("user", text)

        if is_read_page_command(text):
            logger.info("Read-page command detected: %r", text)
            return AssistantReply(
                action="capture_page",
                messages=[user_message, ChatMessage("system", READ_PAGE_NOTICE)],
                speak=READ_PAGE_NOTICE,
            )

        reply = self.generate_response(text, history=history)
        reply.messages.insert(0, user_message)
        return reply

    @_one_at_a_time
    def generate_response(self, text: str, history: Optional[List[dict]] = None) -> AssistantReply:
        if history is None:
            history = self.memory.as_history()

        try:
            answer = self._complete(history, text)
        except LLMError as exc:
            failure = self._failure_message(exc)
            return AssistantReply(messages=[ChatMessage("ai", failure)], speak=failure)

        self.memory.add("assistant", answer)
        return AssistantReply(messages=[ChatMessage("ai", answer)], speak=answer)

    @_one_at_a_time
    def read_page(self, image: Image.Image, analyze: bool = True) -> AssistantReply:
        try:
            page_text = self.reader(image)
        except OCRError as exc:
            logger.error("OCR error: %s", exc)
            return AssistantReply(
                action="none",
                speak="Sorry, I had trouble reading the page. Please try again.",
                ocr_status=StatusUpdate("Error reading page", "error"),
            )

        if not has_readable_text(page_text):
            return AssistantReply(
                action="none",
                speak="I cannot see any text clearly. Please adjust the book position and try again.",
                ocr_status=StatusUpdate("No text found. Try adjusting the book position.", "error"),
            )

        self.memory.remember_page(page_text)
        messages = [ChatMessage("system", READING_NOTICE), ChatMessage("book", page_text)]

        if not analyze:
            return AssistantReply(
                messages=messages,
                speak=page_text,
                ocr_status=StatusUpdate("Page read successfully!", "success"),
            )

        try:
            answer = self._complete(self.memory.as_history(), page_analysis_prompt(page_text))
        except LLMError as exc:
            logger.warning("Page analysis failed, reading page verbatim: %s", exc.kind)
            messages.append(ChatMessage("ai", "I can see the text from your book page. Let me read it to you:"))
            return AssistantReply(
                messages=messages,
                speak=f"Here's what I see on this page: {page_text}",
                ocr_status=StatusUpdate("Page read (AI processing failed)", "success"),
            )

        self.memory.add("assistant", answer)
        messages.append(ChatMessage("ai", answer))
        return AssistantReply(
            messages=messages,
            speak=answer,
            ocr_status=StatusUpdate("Page processed successfully!", "success"),
        )

    @_one_at_a_time
    def clear(self) -> AssistantReply:
        self.memory.clear()
        return AssistantReply(
            messages=[ChatMessage("ai", GREETING)],
            status=StatusUpdate("Microphone is active - start speaking!", "listening"),
            ocr_status=StatusUpdate(READY_OCR_STATUS, "ready"),
        )

    def _complete(self, history: List[dict], prompt: str) -> str:
        if self.llm is None:
            raise LLMError("unavailable", "LLM not configured")
        return run_chat(self.llm, history, prompt).text

    def _failure_message(self, exc: LLMError) -> str:
        if self.llm is None:
            return NOT_CONFIGURED_MESSAGE
        return LLM_FAILURE_MESSAGES.get(exc.kind, GENERIC_FAILURE_MESSAGE)
