import asyncio
import re

from typemaster.config import GameConfig
from typemaster.shared.telemetry import Telemetry, measure_time_async
from typemaster.trainer.domain.errors import ProviderError
from typemaster.trainer.domain.models import SessionMode
from typemaster.trainer.domain.ports import ITextSource

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


class PassageBuilder:
    """
    Assembles the passage for one session.

    Quote tests get a single passage. Timed tests keep appending passages
    until a fast typist could not outrun the text before the clock expires,
    bounded by an attempt budget so a slow source cannot stall the test.
    A failing source never propagates: the built-in passage stands in.
    """

    def __init__(
        self,
        timeout: float = GameConfig.PROVIDER_TIMEOUT_SECONDS,
        max_appends: int = GameConfig.MAX_PASSAGE_APPENDS,
        chars_per_second: int = GameConfig.CHARS_PER_SECOND_CEILING,
    ) -> None:
        self.timeout = timeout
        self.max_appends = max_appends
        self.chars_per_second = chars_per_second
        self.telemetry = Telemetry("PassageBuilder")

    def target_length(self, mode: SessionMode) -> int:
        if not mode.is_timed or mode.duration_seconds is None:
            return 0
        return mode.duration_seconds * self.chars_per_second

    @measure_time_async("build_passage")
    async def build(self, source: ITextSource, mode: SessionMode) -> str:
        passage = await self._fetch(source)
        if passage is None:
            return self._fallback_for(mode)

        target = self.target_length(mode)
        attempts = 0
        while len(passage) < target and attempts < self.max_appends:
            attempts += 1
            extra = await self._fetch(source)
            if extra is None:
                # Stop hammering a failing source; pad with built-in text.
                passage = self._pad(passage, target, self.max_appends - attempts + 1)
                break
            passage = f"{passage} {extra}"

        return normalize_whitespace(passage)

    async def _fetch(self, source: ITextSource) -> str | None:
        try:
            text = await asyncio.wait_for(source.next(), timeout=self.timeout)
        except (ProviderError, TimeoutError) as e:
            self.telemetry.log_warning(
                "Text source unavailable, using built-in passage", error=str(e)
            )
            return None
        except Exception as e:
            self.telemetry.log_error("Text source crashed", e)
            return None

        text = normalize_whitespace(text or "")
        if not text:
            self.telemetry.log_warning("Text source returned an empty passage")
            return None
        return text

    def _fallback_for(self, mode: SessionMode) -> str:
        fallback = GameConfig.fallback_passage()
        return normalize_whitespace(
            self._pad(fallback, self.target_length(mode), self.max_appends)
        )

    @staticmethod
    def _pad(passage: str, target: int, budget: int) -> str:
        fallback = GameConfig.fallback_passage()
        while len(passage) < target and budget > 0:
            passage = f"{passage} {fallback}"
            budget -= 1
        return passage
