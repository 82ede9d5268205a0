from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from bookworm.core.prompt import SYSTEM_PROMPT, VERIFY_PROMPT
from bookworm.errors import LLMError, LLMNotConfiguredError
from config.settings import Settings, get_settings


logger = logging.getLogger("bookworm.agent")


@dataclass
class ChatReply:
    text: str
    usage: Dict[str, Any] = field(default_factory=dict)


def build_llm(settings: Optional[Settings] = None) -> BaseChatModel:
    settings = settings or get_settings()
    if not settings.google_api_key:
        raise LLMNotConfiguredError(
            "GOOGLE_API_KEY not set. Please configure it in environment or .env"
        )

    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        google_api_key=settings.google_api_key,
        temperature=settings.temperature,
        max_output_tokens=settings.max_output_tokens,
    )


def to_lc_messages(
    history: List[dict],
    message: str,
    system_prompt: Optional[str] = SYSTEM_PROMPT,
) -> List[BaseMessage]:
    """Build the message list for one completion.

    History is passed through in full. System turns recorded mid-conversation
    (page notes) are folded into the single leading system message.
    """
    system_parts: List[str] = [system_prompt] if system_prompt else []
    messages: List[BaseMessage] = []
    for item in history or []:
        role = (item.get("role") or "").lower()
        content = item.get("content") or ""
        if not content:
            continue
        if role == "system":
            system_parts.append(content)
        elif role in ("assistant", "ai", "bot"):
            messages.append(AIMessage(content=content))
        else:
            messages.append(HumanMessage(content=content))

    messages.append(HumanMessage(content=message))
    if system_parts:
        messages.insert(0, SystemMessage(content="\n\n".join(system_parts)))
    return messages


def _message_text(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content.strip()
    # Some providers return a list of content blocks.
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text") or "")
    return "".join(parts).strip()


def run_chat(
    llm: BaseChatModel,
    history: List[dict],
    message: str,
    system_prompt: Optional[str] = SYSTEM_PROMPT,
) -> ChatReply:
    if not message or not message.strip():
        raise ValueError("Message is required")

    messages = to_lc_messages(history, message, system_prompt=system_prompt)
    try:
        result = llm.invoke(messages)
    except Exception as exc:
        error = LLMError.from_exception(exc)
        logger.warning("LLM call failed (%s): %s", error.kind, error.detail)
        raise error from exc

    usage = dict(getattr(result, "usage_metadata", None) or {})
    return ChatReply(text=_message_text(result), usage=usage)


def verify_llm(llm: BaseChatModel) -> ChatReply:
    return run_chat(llm, [], VERIFY_PROMPT, system_prompt=None)
