"""Tests for embedding generation.

This module tests:
- Local fallback embeddings
- Provider selection and response validation
- EmbeddingService batching, caching and per-batch fallback
- EmbeddingAPIResource HTTP calls (mocked)
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from role_matching.matching.cache import SESSION_TEXT_TTL_SECONDS, EmbeddingCache
from role_matching.matching.embedder import EmbeddingService
from role_matching.matching.errors import EmbeddingProviderError
from role_matching.matching.fallback import fallback_embedding
from role_matching.matching.providers import FallbackProvider, NetworkProvider, build_provider
from role_matching.matching.text import normalize_text
from role_matching.resources.embeddings import EmbeddingAPIResource

DIMS = 8


class FakeEmbeddingsClient:
    """Stands in for EmbeddingAPIResource; records every batch it is asked for."""

    is_configured = True

    def __init__(self, response=None, error: Exception | None = None, delay: float = 0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: list[list[str]] = []

    async def embed(self, texts):
        self.calls.append(list(texts))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return {
            "data": [
                {"index": i, "embedding": [float(i + 1)] * DIMS} for i in range(len(texts))
            ]
        }


def network_service(client, cache=None, **kwargs) -> EmbeddingService:
    return EmbeddingService(
        NetworkProvider(client, dimensions=DIMS),
        cache=cache if cache is not None else EmbeddingCache(),
        **kwargs,
    )


class TestFallbackEmbedding:
    """Tests for the deterministic local generator."""

    def test_default_dimensions(self):
        """Test that vectors have the provider dimension."""
        assert len(fallback_embedding("python developer")) == 1536

    def test_deterministic(self):
        """Test that the same text always gives the same vector."""
        assert fallback_embedding("senior backend developer") == fallback_embedding(
            "senior backend developer"
        )

    def test_empty_text_is_zero_vector(self):
        """Test that empty text yields all zeros."""
        assert fallback_embedding("", 16) == [0.0] * 16

    def test_keyword_buckets(self):
        """Test the bucket layout: development, frontend, backend, seniority, other."""
        vector = fallback_embedding("senior backend developer", 16)

        assert vector[0] == pytest.approx(1 / 3)
        assert vector[1] == 0.0
        assert vector[2] == pytest.approx(1 / 3)
        assert vector[3] == pytest.approx(1 / 3)
        assert vector[4] == 0.0
        assert all(0.0 <= x <= 0.1 for x in vector[5:13])
        assert vector[13:] == [0.0, 0.0, 0.0]

    def test_texts_without_keywords_still_differ(self):
        """Test that hash components separate texts with no bucket keywords."""
        assert fallback_embedding("gardening", 16) != fallback_embedding("cooking", 16)


class TestBuildProvider:
    """Tests for provider selection."""

    def test_no_client_uses_fallback(self):
        """Test that a missing client selects the fallback provider."""
        assert isinstance(build_provider(None), FallbackProvider)

    def test_empty_key_uses_fallback(self):
        """Test that an empty API key selects the fallback provider."""
        provider = build_provider(EmbeddingAPIResource(api_key="  "))
        assert isinstance(provider, FallbackProvider)
        assert provider.dimensions == 1536

    def test_key_uses_network(self):
        """Test that a configured key selects the network provider."""
        provider = build_provider(EmbeddingAPIResource(api_key="sk-test"), dimensions=DIMS)
        assert isinstance(provider, NetworkProvider)
        assert provider.is_network


class TestNetworkProviderParsing:
    """Tests for embeddings response validation."""

    def test_reorders_by_index(self):
        """Test that items are placed by their index, not their position."""
        provider = NetworkProvider(FakeEmbeddingsClient(), dimensions=2)
        data = {"data": [{"index": 1, "embedding": [0, 1]}, {"index": 0, "embedding": [1, 0]}]}

        assert provider._parse_response(data, 2) == [[1.0, 0.0], [0.0, 1.0]]

    @pytest.mark.parametrize(
        "data",
        [
            None,
            {},
            {"data": "nope"},
            {"data": [{"index": 0, "embedding": [1.0]}]},
            {"data": [{"index": 0, "embedding": [1, 0]}, {"index": 0, "embedding": [0, 1]}]},
            {"data": [{"index": 0, "embedding": [1, 0]}, {"index": 5, "embedding": [0, 1]}]},
            {"data": [{"index": 0, "embedding": [1, 0]}, {"index": 1, "embedding": ["a", 1]}]},
            {"data": [{"index": 0, "embedding": [1, 0]}]},
        ],
    )
    def test_rejects_malformed_responses(self, data):
        """Test that any malformed body raises EmbeddingProviderError."""
        provider = NetworkProvider(FakeEmbeddingsClient(), dimensions=2)
        with pytest.raises(EmbeddingProviderError):
            provider._parse_response(data, 2)


class TestEmbeddingServiceWithoutKey:
    """Tests for EmbeddingService when no API key is configured."""

    def test_returns_full_length_vectors_without_network(self):
        """Test that each text gets a 1536-length vector and nothing is fetched."""
        client = EmbeddingAPIResource(api_key="")
        service = EmbeddingService(build_provider(client), cache=EmbeddingCache())

        with patch("role_matching.resources.embeddings.httpx.AsyncClient") as mock_client_class:
            vectors = asyncio.run(service.embed_batch(["Python developer", "Team lead"]))
            again = asyncio.run(service.embed_batch(["Python developer", "Team lead"]))

        mock_client_class.assert_not_called()
        assert len(vectors) == 2
        assert all(len(v) == 1536 for v in vectors)
        assert vectors == again

    def test_fallback_vectors_are_not_cached(self):
        """Test that locally generated vectors never enter the cache."""
        cache = EmbeddingCache()
        service = EmbeddingService(FallbackProvider(DIMS), cache=cache)

        batch = asyncio.run(service.embed_batch_detailed(["React developer"]))

        assert batch.provenance == ["fallback"]
        assert len(cache) == 0


class TestEmbeddingServiceWithProvider:
    """Tests for EmbeddingService backed by the network provider."""

    def test_preserves_order_and_length(self):
        """Test one vector per input, in input order."""
        service = network_service(FakeEmbeddingsClient())
        vectors = asyncio.run(service.embed_batch(["a", "b", "c"]))

        assert [v[0] for v in vectors] == [1.0, 2.0, 3.0]

    def test_success_is_cached(self):
        """Test that provider vectors are served from cache on the next call."""
        client = FakeEmbeddingsClient()
        cache = EmbeddingCache()
        service = network_service(client, cache=cache)

        first = asyncio.run(service.embed_batch_detailed(["Python developer"]))
        second = asyncio.run(service.embed_batch_detailed(["python   DEVELOPER"]))

        assert first.provenance == ["provider"]
        assert second.provenance == ["cache"]
        assert first.vectors == second.vectors
        assert len(client.calls) == 1
        assert len(cache) == 1

    def test_duplicates_sent_once(self):
        """Test that equivalent texts in one batch make a single provider item."""
        client = FakeEmbeddingsClient()
        service = network_service(client)

        vectors = asyncio.run(service.embed_batch(["Hello", "hello  ", "Other"]))

        assert client.calls == [["hello", "other"]]
        assert vectors[0] == vectors[1]
        assert vectors[0] != vectors[2]

    def test_empty_text_is_zero_vector_without_provider_call(self):
        """Test that blank texts never reach the provider."""
        client = FakeEmbeddingsClient()
        service = network_service(client)

        batch = asyncio.run(service.embed_batch_detailed(["", "   "]))

        assert batch.vectors == [[0.0] * DIMS, [0.0] * DIMS]
        assert batch.provenance == ["empty", "empty"]
        assert client.calls == []

    def test_http_error_falls_back_without_caching(self):
        """Test that a transport error yields fallback vectors and caches nothing."""
        client = FakeEmbeddingsClient(error=httpx.ConnectError("connection refused"))
        cache = EmbeddingCache()
        service = network_service(client, cache=cache)

        batch = asyncio.run(
            service.embed_batch_detailed(["Backend developer"], sources=["candidate-7"])
        )

        assert batch.provenance == ["fallback"]
        assert batch.vectors[0] == fallback_embedding(normalize_text("Backend developer"), DIMS)
        assert len(cache) == 0

    def test_malformed_body_falls_back(self):
        """Test that a response with the wrong item count is treated as a failure."""
        client = FakeEmbeddingsClient(response={"data": []})
        service = network_service(client)

        batch = asyncio.run(service.embed_batch_detailed(["a", "b"]))

        assert batch.provenance == ["fallback", "fallback"]
        assert all(len(v) == DIMS for v in batch.vectors)

    def test_recovered_provider_is_used_next_time(self):
        """Test that a failed batch does not stop the next one from using the provider."""
        client = FakeEmbeddingsClient(error=httpx.ReadTimeout("slow"))
        cache = EmbeddingCache()
        service = network_service(client, cache=cache)

        failed = asyncio.run(service.embed_batch_detailed(["data engineer"]))
        client.error = None
        recovered = asyncio.run(service.embed_batch_detailed(["data engineer"]))

        assert failed.provenance == ["fallback"]
        assert recovered.provenance == ["provider"]
        assert len(cache) == 1

    def test_request_timeout_falls_back(self):
        """Test that a provider slower than the request timeout is abandoned."""
        client = FakeEmbeddingsClient(delay=1.0)
        service = network_service(client, request_timeout_seconds=0.01)

        batch = asyncio.run(service.embed_batch_detailed(["slow text"]))

        assert batch.provenance == ["fallback"]

    def test_ttl_is_applied_to_new_entries(self):
        """Test that the service TTL is used when none is passed."""
        now = [0.0]
        cache = EmbeddingCache(clock=lambda: now[0])
        service = network_service(FakeEmbeddingsClient(), cache=cache, ttl_seconds=60)

        asyncio.run(service.embed_batch(["cv text"]))
        now[0] = 61.0

        assert len(cache) == 0

    def test_check_provider(self):
        """Test the API health probe in both configurations."""
        ok_service = network_service(FakeEmbeddingsClient())
        failing = network_service(FakeEmbeddingsClient(error=httpx.ConnectError("down")))
        local = EmbeddingService(FallbackProvider(DIMS), cache=EmbeddingCache())

        ok, _ = asyncio.run(ok_service.check_provider())
        assert ok is True
        assert asyncio.run(failing.check_provider())[0] is False
        assert asyncio.run(local.check_provider()) == (False, 0)

    def test_session_ttl_expires_after_an_hour(self):
        """Test that session text passed with the short TTL leaves the cache after an hour."""
        now = [0.0]
        cache = EmbeddingCache(clock=lambda: now[0])
        service = network_service(FakeEmbeddingsClient(), cache=cache)

        asyncio.run(service.embed_batch(["parsed cv text"], ttl_seconds=SESSION_TEXT_TTL_SECONDS))
        now[0] = SESSION_TEXT_TTL_SECONDS - 1
        assert len(cache) == 1

        now[0] = SESSION_TEXT_TTL_SECONDS + 1
        assert len(cache) == 0

    @staticmethod
    def _http_resource(monkeypatch, handler) -> EmbeddingAPIResource:
        """A real EmbeddingAPIResource whose HTTP client answers through handler."""
        real_client = httpx.AsyncClient

        def client_factory(*args, **kwargs):
            return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

        monkeypatch.setattr("role_matching.resources.embeddings.httpx.AsyncClient", client_factory)
        return EmbeddingAPIResource(api_key="sk-test", base_url="https://example.test/v1")

    def test_non_json_body_falls_back(self, monkeypatch):
        """Test that a 200 response with an HTML body is treated as a provider failure."""
        resource = self._http_resource(
            monkeypatch, lambda request: httpx.Response(200, text="<html>bad gateway</html>")
        )
        cache = EmbeddingCache()
        service = network_service(resource, cache=cache)

        batch = asyncio.run(service.embed_batch_detailed(["python developer"]))

        assert batch.provenance == ["fallback"]
        assert batch.vectors[0] == fallback_embedding(normalize_text("python developer"), DIMS)
        assert len(cache) == 0

    def test_non_json_body_fails_health_check(self, monkeypatch):
        """Test that check_provider reports False instead of raising on a non-JSON body."""
        resource = self._http_resource(
            monkeypatch, lambda request: httpx.Response(200, text="not json")
        )
        service = network_service(resource)

        ok, _ = asyncio.run(service.check_provider())

        assert ok is False

    def test_malformed_usage_block_is_ignored(self, monkeypatch):
        """Test that a non-dict usage block does not break an otherwise valid response."""
        resource = self._http_resource(
            monkeypatch,
            lambda request: httpx.Response(
                200,
                json={"data": [{"index": 0, "embedding": [0.5] * DIMS}], "usage": "n/a"},
            ),
        )
        service = network_service(resource)

        batch = asyncio.run(service.embed_batch_detailed(["python developer"]))

        assert batch.provenance == ["provider"]
        assert resource.get_usage().total_input_tokens == 0
        assert resource.get_usage().texts_embedded == 1


class TestEmbeddingAPIResource:
    """Tests for the embeddings HTTP client (mocked)."""

    @pytest.fixture
    def resource(self):
        return EmbeddingAPIResource(
            api_key="sk-test", base_url="https://example.test/v1", model="text-embedding-3-small"
        )

    @patch("role_matching.resources.embeddings.httpx.AsyncClient")
    def test_embed_posts_batch_and_tracks_usage(self, mock_client_class, resource):
        """Test the request shape and usage accounting."""
        mock_client = MagicMock()
        mock_client_class.return_value.__aenter__.return_value = mock_client
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "data": [{"index": 0, "embedding": [0.1]}, {"index": 1, "embedding": [0.2]}],
            "usage": {"prompt_tokens": 7, "total_tokens": 7},
        }
        mock_client.post = AsyncMock(return_value=mock_response)

        data = asyncio.run(resource.embed(["a", "b"]))

        assert len(data["data"]) == 2
        args, kwargs = mock_client.post.call_args
        assert args[0] == "/embeddings"
        assert kwargs["json"] == {"model": "text-embedding-3-small", "input": ["a", "b"]}
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        usage = resource.get_usage()
        assert usage.total_input_tokens == 7
        assert usage.api_calls == 1
        assert usage.texts_embedded == 2

    @patch("role_matching.resources.embeddings.httpx.AsyncClient")
    def test_http_errors_propagate(self, mock_client_class, resource):
        """Test that non-2xx responses raise httpx errors for the caller to handle."""
        mock_client = MagicMock()
        mock_client_class.return_value.__aenter__.return_value = mock_client
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPError("500 Server Error")
        mock_client.post = AsyncMock(return_value=mock_response)

        with pytest.raises(httpx.HTTPError):
            asyncio.run(resource.embed("a"))
        assert resource.get_usage().api_calls == 0

    @patch("role_matching.resources.embeddings.httpx.AsyncClient")
    def test_non_json_body_raises_provider_error(self, mock_client_class, resource):
        """Test that an undecodable body raises EmbeddingProviderError, not ValueError."""
        mock_client = MagicMock()
        mock_client_class.return_value.__aenter__.return_value = mock_client
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.side_effect = ValueError("Expecting value")
        mock_client.post = AsyncMock(return_value=mock_response)

        with pytest.raises(EmbeddingProviderError, match="not JSON"):
            asyncio.run(resource.embed("a"))
        assert resource.get_usage().api_calls == 0

    def test_is_configured_reads_environment(self, monkeypatch):
        """Test that OPENAI_API_KEY is the default key."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        assert EmbeddingAPIResource().is_configured

        monkeypatch.delenv("OPENAI_API_KEY")
        assert not EmbeddingAPIResource().is_configured
