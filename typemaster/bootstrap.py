import logging
from dataclasses import dataclass

from typemaster.config import Settings
from typemaster.shared.observability import configure_observability
from typemaster.trainer.adapters.db_manager import DatabaseManager
from typemaster.trainer.adapters.kv_store import InMemoryStore, SQLiteStore
from typemaster.trainer.adapters.repository import TypeMasterRepository
from typemaster.trainer.adapters.text_sources import GeminiTextSource, StaticCorpusSource
from typemaster.trainer.adapters.timers import AsyncioTimerFactory
from typemaster.trainer.application.auth import AuthService
from typemaster.trainer.application.controller import TypingTestController
from typemaster.trainer.application.service import ProgressionService
from typemaster.trainer.domain.passage import PassageBuilder
from typemaster.trainer.domain.ports import IKeyValueStore


@dataclass
class App:
    """Wired object graph handed to whatever front-end drives the engine."""

    repo: TypeMasterRepository
    auth: AuthService
    service: ProgressionService
    controller: TypingTestController


def build_store(settings: Settings) -> IKeyValueStore:
    if settings.db_path == ":memory:":
        return InMemoryStore()
    return SQLiteStore(DatabaseManager(settings.db_path))


def build_app(settings: Settings | None = None, store: IKeyValueStore | None = None) -> App:
    """Composition root."""
    settings = settings or Settings.from_env()

    # Infrastructure
    repo = TypeMasterRepository(store or build_store(settings))

    # Application
    auth = AuthService(repo)
    service = ProgressionService(repo)
    controller = TypingTestController(
        service,
        static_source=StaticCorpusSource(),
        ai_source=GeminiTextSource(settings.gemini_api_key),
        builder=PassageBuilder(),
        timer_factory=AsyncioTimerFactory(),
        user=auth.current_user(),
    )
    return App(repo=repo, auth=auth, service=service, controller=controller)


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    configure_observability(settings.metrics_port)
