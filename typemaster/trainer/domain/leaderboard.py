from collections.abc import Iterable

from typemaster.config import GameConfig
from typemaster.trainer.domain.models import LeaderboardEntry


class Leaderboard:
    """
    Rank-ordered best scores, at most one entry per user.

    Ordering is WPM descending; equal WPM ranks the earlier achievement
    first. Bounded to the top `size` entries.
    """

    def __init__(
        self,
        entries: Iterable[LeaderboardEntry] = (),
        size: int = GameConfig.LEADERBOARD_SIZE,
    ) -> None:
        self.size = size
        self._entries: list[LeaderboardEntry] = []
        for entry in entries:
            self.upsert(entry)

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _rank_key(entry: LeaderboardEntry) -> tuple:
        return (-entry.wpm, entry.achieved_at)

    def upsert(self, entry: LeaderboardEntry) -> None:
        previous = self.get(entry.user_id)
        if previous is not None and previous.wpm == entry.wpm:
            # Same best score re-submitted: keep its original rank slot.
            entry = entry.model_copy(update={"achieved_at": previous.achieved_at})

        ranked = [e for e in self._entries if e.user_id != entry.user_id]
        ranked.append(entry)
        ranked.sort(key=self._rank_key)
        self._entries = ranked[: self.size]

    def get(self, user_id: str) -> LeaderboardEntry | None:
        for entry in self._entries:
            if entry.user_id == user_id:
                return entry
        return None

    def rank_of(self, user_id: str) -> int | None:
        """1-based position, or None when the user is not ranked."""
        for position, entry in enumerate(self._entries, start=1):
            if entry.user_id == user_id:
                return position
        return None

    def top(self, n: int | None = None) -> list[LeaderboardEntry]:
        if n is None:
            return list(self._entries)
        return self._entries[: max(n, 0)]
