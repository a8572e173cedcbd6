"""Query pipeline: retrieve, prompt, answer, remember."""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from contextvault.exceptions import ValidationError
from contextvault.memory import ConversationMemory, ConversationState, Role
from contextvault.providers import LLMProvider, extract_answer

from .base import BaseRetriever
from .document import ScoredPassage
from .retriever import format_context

logger = logging.getLogger(__name__)

NO_CONTEXT = "No relevant documents found."
NO_HISTORY = "No previous conversation."

RAG_PROMPT_TEMPLATE = """You are a helpful AI assistant that answers questions based on the provided context documents.
Use the context information to provide accurate and relevant answers. If the context doesn't contain enough information to answer the question, say so honestly.

Previous conversation history:
{history}

Context documents:
{context}

User question: {query}

Please provide a helpful answer based on the context above. If relevant, cite which source(s) you used."""


def build_rag_prompt(query: str, context: str, history: str = "") -> str:
    """Fill the answer prompt with retrieved context and prior turns."""
    return RAG_PROMPT_TEMPLATE.format(
        history=history or NO_HISTORY,
        context=context or NO_CONTEXT,
        query=query,
    )


class SourceSummary(BaseModel):
    """A retrieved passage as reported to the caller."""
    text: str
    name: str
    score: float


class QueryResult(BaseModel):
    """Answer to one query.

    Attributes:
        answer: Text extracted from the model response
        sources: Retrieved passages, best first, with truncated text
        conversation_state: Session state after both turns were appended
    """

    answer: str
    sources: list[SourceSummary] = Field(default_factory=list)
    conversation_state: ConversationState


class QueryPipeline:
    """Answer questions from stored passages with per-session memory.

    Example:
        ```python
        pipeline = QueryPipeline(retriever, memory, llm)
        result = await pipeline.query("What is the refund policy?", "session-1")
        print(result.answer)
        ```
    """

    def __init__(
        self,
        retriever: BaseRetriever,
        memory: ConversationMemory,
        llm: LLMProvider,
        top_k: int = 5,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        snippet_length: int = 200,
    ):
        """Initialize the pipeline.

        Args:
            retriever: Passage retriever
            memory: Conversation memory
            llm: Language-model provider
            top_k: Default number of passages per query
            max_tokens: Completion budget
            temperature: Sampling temperature
            snippet_length: Characters of passage text reported per source
        """
        self.retriever = retriever
        self.memory = memory
        self.llm = llm
        self.top_k = top_k
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.snippet_length = snippet_length

    async def query(self, query: str, session_id: str, k: Optional[int] = None) -> QueryResult:
        """Answer ``query`` in the context of ``session_id``.

        The user turn and then the assistant turn are appended only after
        the model has answered, so a failed call leaves memory untouched.

        Raises:
            ValidationError: Missing query or session id
            EmbeddingError: Query embedding failed
            LLMError: Completion failed or returned an unusable response
        """
        if not query or not query.strip():
            raise ValidationError("Query is required")
        if not session_id:
            raise ValidationError("session_id is required")

        passages = await self.retriever.retrieve(query, self.top_k if k is None else k)
        context = format_context(passages)

        state = await self.memory.get_state(session_id)
        history = ConversationMemory.format_for_prompt(state.turns)

        prompt = build_rag_prompt(query, context, history)
        raw = await self.llm.complete(
            [{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        answer = extract_answer(raw)

        await self.memory.append(session_id, Role.USER, query)
        state = await self.memory.append(session_id, Role.ASSISTANT, answer)

        logger.info(f"Answered query for session {session_id} from {len(passages)} passages")
        return QueryResult(
            answer=answer,
            sources=[self._summarize(passage) for passage in passages],
            conversation_state=state,
        )

    def _summarize(self, passage: ScoredPassage) -> SourceSummary:
        text = passage.text
        if len(text) > self.snippet_length:
            text = text[:self.snippet_length] + "..."
        return SourceSummary(text=text, name=passage.file_name, score=passage.score)
