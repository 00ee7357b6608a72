import random
from collections.abc import Sequence
from typing import Any

from google import genai

from typemaster.config import GameConfig
from typemaster.shared.telemetry import Telemetry, measure_time_async
from typemaster.trainer.domain.errors import ProviderError
from typemaster.trainer.domain.ports import ITextSource


class StaticCorpusSource(ITextSource):
    """Random pick from a fixed in-memory corpus. Never fails."""

    def __init__(
        self,
        corpus: Sequence[str] = GameConfig.SAMPLE_TEXTS,
        rng: random.Random | None = None,
    ) -> None:
        if not corpus:
            raise ValueError("corpus must contain at least one passage")
        self.corpus = list(corpus)
        self.rng = rng or random.Random()

    async def next(self) -> str:
        return self.rng.choice(self.corpus)


class GeminiTextSource(ITextSource):
    """
    Asks a Gemini model for a fresh paragraph (~60-80 words, plain text).
    Every failure surfaces as ProviderError so callers can fall back.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = GameConfig.GEMINI_MODEL,
        prompt: str = GameConfig.GEMINI_PROMPT,
        client: Any = None,
    ) -> None:
        self.telemetry = Telemetry("GeminiTextSource")
        self.model = model
        self.prompt = prompt
        self.client = client
        if self.client is None and api_key:
            self.client = genai.Client(api_key=api_key)

    @property
    def available(self) -> bool:
        return self.client is not None

    @measure_time_async("gemini_generate")
    async def next(self) -> str:
        if self.client is None:
            raise ProviderError("No Gemini API key configured")

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model, contents=self.prompt
            )
        except Exception as e:
            raise ProviderError(f"Gemini request failed: {e}") from e

        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise ProviderError("Gemini returned an empty passage")
        return text
