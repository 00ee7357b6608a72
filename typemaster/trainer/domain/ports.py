from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class ITextSource(ABC):
    @abstractmethod
    async def next(self) -> str:
        """
        Produce one plain-text passage.
        Raises ProviderError when the source is unavailable.
        """
        pass


class IKeyValueStore(ABC):
    """
    Durable storage addressed by string keys.
    Values are JSON-serializable and always read/written whole.
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class ITimer(ABC):
    @abstractmethod
    def cancel(self) -> None:
        """Stop firing. Must be synchronous and idempotent."""
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class ITimerFactory(ABC):
    @abstractmethod
    def start(self, interval: float, callback: Callable[[], None]) -> ITimer:
        """Call `callback` every `interval` seconds until cancelled."""
        pass
