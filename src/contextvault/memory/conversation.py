"""
Bounded per-session conversation memory.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from contextvault.exceptions import ValidationError
from contextvault.storage.actor import Actor
from contextvault.storage.base import ActorStorage, StorageFactory
from contextvault.storage.memory_backend import MemoryStorageFactory

MAX_TURNS = 10
STATE_FIELD = "state"


class Role(str, Enum):
    """Speaker of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"


class ConversationTurn(BaseModel):
    """One utterance."""
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)


class ConversationState(BaseModel):
    """The retained turns of one session, oldest first."""
    session_id: str
    turns: list[ConversationTurn] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ConversationSession(Actor):
    """
    Actor owning the conversation state of a single session.

    Keeps at most ``max_turns`` turns; older turns are evicted first.
    """

    def __init__(self, session_id: str, storage: ActorStorage, max_turns: int = MAX_TURNS):
        super().__init__(f"session:{session_id}", storage)
        self.session_id = session_id
        self.max_turns = max_turns

    async def get_state(self) -> ConversationState:
        async with self.exclusive() as storage:
            return await self._load(storage)

    async def append(self, role: Role | str, content: str) -> ConversationState:
        try:
            role = Role(role)
        except ValueError:
            raise ValidationError(f"Unknown conversation role: {role!r}")

        async with self.exclusive() as storage:
            state = await self._load(storage)
            turns = deque(state.turns, maxlen=self.max_turns)
            turns.append(ConversationTurn(role=role, content=content))
            state.turns = list(turns)
            state.updated_at = datetime.now()
            await storage.put(STATE_FIELD, state.model_dump())
            return state

    async def clear(self) -> None:
        async with self.exclusive() as storage:
            await storage.delete(STATE_FIELD)

    async def _load(self, storage: ActorStorage) -> ConversationState:
        stored = await storage.get(STATE_FIELD)
        if not stored:
            return ConversationState(session_id=self.session_id)
        return ConversationState.model_validate(stored)


class ConversationMemory:
    """
    Conversation memory for all sessions.

    Each session id maps to its own :class:`ConversationSession` actor, so
    operations on one session are serialized while different sessions
    proceed independently.

    Actors are kept for the lifetime of the memory, including after
    :meth:`clear`, which only drops the stored turns. Evicting an actor while
    a call still holds it would let a second actor for the same session
    interleave writes with the first.
    """

    def __init__(
        self,
        storage_factory: StorageFactory | None = None,
        max_turns: int = MAX_TURNS,
    ):
        self.storage_factory = storage_factory or MemoryStorageFactory()
        self.max_turns = max_turns
        self._sessions: dict[str, ConversationSession] = {}

    def session(self, session_id: str) -> ConversationSession:
        """Get (or create) the actor for ``session_id``."""
        if not session_id:
            raise ValidationError("session_id is required")
        if session_id not in self._sessions:
            storage = self.storage_factory(f"session:{session_id}")
            self._sessions[session_id] = ConversationSession(session_id, storage, self.max_turns)
        return self._sessions[session_id]

    async def get_state(self, session_id: str) -> ConversationState:
        """Current state; a fresh empty state for unknown sessions."""
        return await self.session(session_id).get_state()

    async def append(self, session_id: str, role: Role | str, content: str) -> ConversationState:
        """Append a turn and return the post-append state."""
        return await self.session(session_id).append(role, content)

    async def clear(self, session_id: str) -> None:
        """Forget everything said in ``session_id``."""
        await self.session(session_id).clear()

    @staticmethod
    def format_for_prompt(turns: list[ConversationTurn]) -> str:
        """Render turns as ``"User: ..."`` / ``"Assistant: ..."`` blocks."""
        return "\n\n".join(
            f"{'User' if turn.role == Role.USER else 'Assistant'}: {turn.content}"
            for turn in turns
        )
