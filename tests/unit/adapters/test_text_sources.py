import asyncio
import random
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from typemaster.config import GameConfig
from typemaster.trainer.adapters.text_sources import GeminiTextSource, StaticCorpusSource
from typemaster.trainer.domain.errors import ProviderError


def gemini_client(response=None, error=None):
    client = Mock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=error)
    return client


class TestStaticCorpusSource:
    def test_returns_a_corpus_passage(self):
        source = StaticCorpusSource(rng=random.Random(1))

        text = asyncio.run(source.next())

        assert text in GameConfig.SAMPLE_TEXTS

    def test_custom_corpus(self):
        source = StaticCorpusSource(["only one"])

        assert asyncio.run(source.next()) == "only one"

    def test_empty_corpus_is_rejected(self):
        with pytest.raises(ValueError):
            StaticCorpusSource([])


class TestGeminiTextSource:
    def test_without_key_is_unavailable(self):
        source = GeminiTextSource(api_key=None)

        assert source.available is False
        with pytest.raises(ProviderError):
            asyncio.run(source.next())

    def test_returns_model_text(self):
        client = gemini_client(SimpleNamespace(text="  A fresh paragraph.  "))
        source = GeminiTextSource(api_key=None, client=client)

        assert asyncio.run(source.next()) == "A fresh paragraph."
        client.aio.models.generate_content.assert_awaited_once_with(
            model=GameConfig.GEMINI_MODEL, contents=GameConfig.GEMINI_PROMPT
        )

    def test_sdk_failure_becomes_provider_error(self):
        client = gemini_client(error=RuntimeError("quota exceeded"))
        source = GeminiTextSource(api_key=None, client=client)

        with pytest.raises(ProviderError) as info:
            asyncio.run(source.next())

        assert isinstance(info.value.__cause__, RuntimeError)

    def test_empty_response_is_provider_error(self):
        client = gemini_client(SimpleNamespace(text=None))
        source = GeminiTextSource(api_key=None, client=client)

        with pytest.raises(ProviderError):
            asyncio.run(source.next())
