"""Server-side conversation memory.

Each client gets one ConversationMemory for the lifetime of the process. The
turn list only grows until the client clears it, and everything is lost on
restart.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, List

from bookworm.core.prompt import page_context_note


ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str

    def as_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ConversationMemory:
    def __init__(self) -> None:
        # Held by ReadingAssistant for a whole request so that concurrent
        # requests for one client see each other's turns in order.
        self.lock = threading.RLock()
        self._turns: List[ConversationTurn] = []
        self.current_page_text: str = ""

    def __len__(self) -> int:
        return len(self._turns)

    def add(self, role: str, content: str) -> ConversationTurn:
        if role not in ROLES:
            raise ValueError(f"Unknown conversation role: {role!r}")
        turn = ConversationTurn(role=role, content=content)
        with self.lock:
            self._turns.append(turn)
        return turn

    def remember_page(self, page_text: str) -> None:
        with self.lock:
            self.current_page_text = page_text
            self.add("system", page_context_note(page_text))

    def as_history(self) -> List[Dict[str, str]]:
        with self.lock:
            return [turn.as_dict() for turn in self._turns]

    def clear(self) -> None:
        with self.lock:
            self._turns.clear()
            self.current_page_text = ""


class SessionStore:
    """In-memory map of client_id to ConversationMemory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, ConversationMemory] = {}

    def __contains__(self, client_id: str) -> bool:
        with self._lock:
            return client_id in self._sessions

    def get(self, client_id: str) -> ConversationMemory:
        with self._lock:
            memory = self._sessions.get(client_id)
            if memory is None:
                memory = ConversationMemory()
                self._sessions[client_id] = memory
            return memory

    def drop(self, client_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(client_id, None) is not None
