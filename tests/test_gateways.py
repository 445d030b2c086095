"""Tests for the embedding and generation gateways, with model clients mocked out."""

from unittest.mock import MagicMock

import httpx
import numpy as np
import ollama
import pytest

from notes_tutor.embeddings.embedder import Embedder, OllamaEmbedder, get_embedder
from notes_tutor.errors import InvalidResponse, ServiceUnavailable
from notes_tutor.rag.generator import Generator


def _local_embedder(output, **kwargs) -> Embedder:
    embedder = Embedder(model_name="fake-minilm", dimension=3, **kwargs)
    embedder._model = MagicMock()
    embedder._model.encode.return_value = output
    return embedder


# ── Embedder (sentence-transformers) ────────────────────────────────────────


class TestEmbedder:
    def test_returns_floats(self):
        embedder = _local_embedder(np.array([0.1, 0.2, 0.3], dtype=np.float32))
        vector = embedder.embed("fractions")
        assert vector == pytest.approx([0.1, 0.2, 0.3])
        assert all(isinstance(v, float) for v in vector)

    def test_variant_prefixes(self):
        embedder = _local_embedder(np.zeros(3) + 1, query_prefix="query: ", document_prefix="passage: ")

        embedder.embed("What is a fraction?", variant="query")
        embedder.embed("A fraction is...", variant="document")

        calls = [call.args[0] for call in embedder._model.encode.call_args_list]
        assert calls == ["query: What is a fraction?", "passage: A fraction is..."]

    def test_wrong_dimension(self):
        with pytest.raises(InvalidResponse):
            _local_embedder(np.array([0.1, 0.2])).embed("text")

    def test_non_finite_values(self):
        with pytest.raises(InvalidResponse):
            _local_embedder(np.array([0.1, np.nan, 0.3])).embed("text")

    def test_encode_failure(self):
        embedder = _local_embedder(None)
        embedder._model.encode.side_effect = RuntimeError("CUDA out of memory")
        with pytest.raises(ServiceUnavailable):
            embedder.embed("text")

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_text(self, text):
        with pytest.raises(ValueError):
            _local_embedder(np.ones(3)).embed(text)


# ── OllamaEmbedder ──────────────────────────────────────────────────────────


class TestOllamaEmbedder:
    def test_returns_first_embedding(self):
        client = MagicMock()
        client.embed.return_value = {"embeddings": [[1.0, 2.0]]}
        embedder = OllamaEmbedder(model_name="nomic-embed-text", dimension=2, client=client)

        assert embedder.embed("plants") == [1.0, 2.0]
        assert client.embed.call_args.kwargs["model"] == "nomic-embed-text"

    @pytest.mark.parametrize(
        "error",
        [ollama.ResponseError("model not found", 404), httpx.ConnectError("refused"), ConnectionError()],
    )
    def test_provider_errors(self, error):
        client = MagicMock()
        client.embed.side_effect = error
        with pytest.raises(ServiceUnavailable):
            OllamaEmbedder(dimension=2, client=client).embed("plants")

    @pytest.mark.parametrize("response", [{"embeddings": []}, {"embeddings": [[1.0, 2.0, 3.0]]}, {"embeddings": [["x", 1]]}])
    def test_bad_replies(self, response):
        client = MagicMock()
        client.embed.return_value = response
        with pytest.raises(InvalidResponse):
            OllamaEmbedder(dimension=2, client=client).embed("plants")


def test_unknown_backend():
    with pytest.raises(ValueError):
        get_embedder("word2vec")


# ── Generator (Ollama chat) ─────────────────────────────────────────────────


class TestGenerator:
    def test_returns_reply_text(self):
        client = MagicMock()
        client.chat.return_value = {"message": {"content": "Half of 10 is 5."}}
        generator = Generator(model="llama3.2", client=client)

        assert generator.generate("What is half of 10?", max_tokens=50, temperature=0.2) == "Half of 10 is 5."

        kwargs = client.chat.call_args.kwargs
        assert kwargs["options"] == {"num_predict": 50, "temperature": 0.2}
        assert kwargs["messages"][0]["role"] == "system"
        assert kwargs["messages"][1] == {"role": "user", "content": "What is half of 10?"}

    def test_system_prompt_override(self):
        client = MagicMock()
        client.chat.return_value = {"message": {"content": "ok"}}
        Generator(client=client).generate("hi", max_tokens=5, temperature=0.0, system="Be brief.")
        assert client.chat.call_args.kwargs["messages"][0]["content"] == "Be brief."

    @pytest.mark.parametrize(
        "error",
        [ollama.ResponseError("overloaded", 500), httpx.ReadTimeout("slow"), httpx.ConnectError("refused")],
    )
    def test_provider_errors(self, error):
        client = MagicMock()
        client.chat.side_effect = error
        with pytest.raises(ServiceUnavailable):
            Generator(client=client).generate("hi", max_tokens=5, temperature=0.0)

    @pytest.mark.parametrize("response", [{"message": {"content": ""}}, {"message": {"content": "  "}}, {"message": None}])
    def test_empty_reply(self, response):
        client = MagicMock()
        client.chat.return_value = response
        with pytest.raises(InvalidResponse):
            Generator(client=client).generate("hi", max_tokens=5, temperature=0.0)

    def test_check_available_when_down(self):
        client = MagicMock()
        client.list.side_effect = httpx.ConnectError("refused")
        assert Generator(client=client).check_available() is False
