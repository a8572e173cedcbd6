"""Tests for language-model providers, response decoding and embedding services."""

import json

import httpx
import pytest

from contextvault.exceptions import EmbeddingError, LLMError
from contextvault.providers import (
    OpenAIProvider,
    WorkersAIClient,
    WorkersAIProvider,
    extract_answer,
)
from contextvault.rag import (
    FakeEmbedding,
    LocalEmbedding,
    OpenAIEmbedding,
    WorkersAIEmbedding,
    coerce_embedding,
    normalize_vector,
)


def workers_ai_client(handler) -> WorkersAIClient:
    return WorkersAIClient(
        account_id="acct",
        api_token="token",
        transport=httpx.MockTransport(handler),
    )


class TestExtractAnswer:
    """Tests for extract_answer."""

    def test_plain_string(self):
        assert extract_answer("  Hello there.  ") == "Hello there."

    def test_choice_message(self):
        raw = {"choices": [{"message": {"role": "assistant", "content": "From message."}}]}
        assert extract_answer(raw) == "From message."

    def test_choice_text(self):
        assert extract_answer({"choices": [{"text": "From text."}]}) == "From text."

    def test_choice_without_content(self):
        assert extract_answer({"choices": [{"message": {"content": None}}]}) == "No response generated."

    def test_named_fields_in_priority_order(self):
        assert extract_answer({"response": "r", "text": "t"}) == "r"
        assert extract_answer({"text": "t", "description": "d"}) == "t"
        assert extract_answer({"description": "d"}) == "d"

    def test_choices_win_over_named_fields(self):
        raw = {"choices": [{"text": "choice"}], "response": "named"}
        assert extract_answer(raw) == "choice"

    def test_unknown_mapping_serialized(self):
        raw = {"answer": 42}
        assert json.loads(extract_answer(raw)) == raw

    def test_list_serialized(self):
        assert extract_answer(["a", "b"]) == '["a", "b"]'

    @pytest.mark.parametrize("raw", [None, 42, 3.5])
    def test_unusable_response(self, raw):
        with pytest.raises(LLMError):
            extract_answer(raw)


class TestWorkersAIClient:
    """Tests for the Workers AI REST client."""

    @pytest.mark.asyncio
    async def test_run(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "result": {"response": "hi"}})

        client = workers_ai_client(handler)
        result = await client.run("@cf/meta/llama-3.1-70b-instruct", {"prompt": "hello"})
        await client.close()

        assert result == {"response": "hi"}
        assert seen["url"].endswith("/accounts/acct/ai/run/@cf/meta/llama-3.1-70b-instruct")
        assert seen["auth"] == "Bearer token"
        assert seen["body"] == {"prompt": "hello"}

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "errors": ["bad"], "result": None})

        with pytest.raises(ValueError):
            await workers_ai_client(handler).run("m", {})

    @pytest.mark.asyncio
    async def test_http_error(self):
        def handler(request):
            return httpx.Response(500, json={"error": "boom"})

        with pytest.raises(httpx.HTTPStatusError):
            await workers_ai_client(handler).run("m", {})

    def test_credentials_from_environment(self, monkeypatch):
        monkeypatch.setenv("CLOUDFLARE_ACCOUNT_ID", "env-acct")
        monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "env-token")
        client = WorkersAIClient()

        assert client.account_id == "env-acct"
        assert client.api_token == "env-token"
        assert "env-acct" in client.base_url


class TestWorkersAIProvider:
    """Tests for WorkersAIProvider."""

    @pytest.mark.asyncio
    async def test_complete(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "result": {"response": "Answer."}})

        provider = WorkersAIProvider(client=workers_ai_client(handler))
        raw = await provider.complete([{"role": "user", "content": "q"}], max_tokens=50, temperature=0.1)

        assert extract_answer(raw) == "Answer."
        assert bodies[0] == {
            "messages": [{"role": "user", "content": "q"}],
            "max_tokens": 50,
            "temperature": 0.1,
        }

    @pytest.mark.asyncio
    async def test_failure_wrapped(self):
        def handler(request):
            return httpx.Response(503)

        provider = WorkersAIProvider(client=workers_ai_client(handler))
        with pytest.raises(LLMError) as exc_info:
            await provider.complete([{"role": "user", "content": "q"}])
        assert exc_info.value.code == 502


class TestOpenAIProvider:
    """Tests for OpenAIProvider with a stubbed client."""

    @pytest.mark.asyncio
    async def test_failure_wrapped(self):
        class BrokenCompletions:
            async def create(self, **params):
                raise RuntimeError("network down")

        class BrokenClient:
            class chat:
                completions = BrokenCompletions()

        provider = OpenAIProvider(api_key="test")
        provider._client = BrokenClient()

        with pytest.raises(LLMError):
            await provider.complete([{"role": "user", "content": "q"}])

    def test_count_tokens(self):
        assert OpenAIProvider(api_key="test").count_tokens("abcdefgh") == 2


class TestCoerceEmbedding:
    """Tests for embedding response coercion."""

    def test_shapes(self):
        assert coerce_embedding([1, 2.5]) == [1.0, 2.5]
        assert coerce_embedding([[0.5, 0.5], [9.0, 9.0]]) == [0.5, 0.5]
        assert coerce_embedding({"shape": [1, 2], "data": [[0.1, 0.2]]}) == [0.1, 0.2]

    @pytest.mark.parametrize("response", [None, [], "vector", {"result": [1.0]}, [True, False], [["a"]]])
    def test_unexpected_shapes(self, response):
        with pytest.raises(EmbeddingError):
            coerce_embedding(response)


class TestEmbeddings:
    """Tests for embedding services."""

    @pytest.mark.asyncio
    async def test_workers_ai_embedding(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={
                "success": True,
                "result": {"shape": [1, 3], "data": [[0.1, 0.2, 0.3]]},
            })

        embedding = WorkersAIEmbedding(client=workers_ai_client(handler))
        vector = await embedding.embed("  hello  ")

        assert vector == [0.1, 0.2, 0.3]
        assert bodies == [{"text": "hello"}]
        assert embedding.dimension == 1024

    @pytest.mark.asyncio
    async def test_workers_ai_embedding_failure(self):
        def handler(request):
            return httpx.Response(500)

        embedding = WorkersAIEmbedding(client=workers_ai_client(handler))
        with pytest.raises(EmbeddingError):
            await embedding.embed("hello")

    @pytest.mark.asyncio
    async def test_fake_embedding_is_deterministic(self):
        embedding = FakeEmbedding(dimension=32)

        first = await embedding.embed("Python is a language")
        second = await embedding.embed("python IS a language")

        assert first == second
        assert len(first) == 32

    @pytest.mark.asyncio
    async def test_fake_embedding_similarity(self):
        embedding = FakeEmbedding()
        query = normalize_vector(await embedding.embed("refund policy days"))
        close = normalize_vector(await embedding.embed("the refund policy allows thirty days"))
        far = normalize_vector(await embedding.embed("penguins live in antarctica"))

        def dot(a, b):
            return sum(x * y for x, y in zip(a, b))

        assert dot(query, close) > dot(query, far)

    @pytest.mark.asyncio
    async def test_fake_embedding_of_punctuation_is_zero(self):
        assert await FakeEmbedding(dimension=4).embed("?!") == [0.0] * 4

    @pytest.mark.asyncio
    async def test_embed_documents(self):
        embedding = FakeEmbedding(dimension=8)
        vectors = await embedding.embed_documents(["a", "b"])

        assert vectors == [await embedding.embed("a"), await embedding.embed("b")]

    def test_dimensions(self):
        assert OpenAIEmbedding(api_key="test").dimension == 1536
        assert LocalEmbedding().dimension == 384
        assert FakeEmbedding(dimension=16).dimension == 16
