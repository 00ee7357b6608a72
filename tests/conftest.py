import pytest

from typemaster.trainer.adapters.db_manager import DatabaseManager
from typemaster.trainer.adapters.kv_store import InMemoryStore, SQLiteStore
from typemaster.trainer.adapters.repository import TypeMasterRepository
from typemaster.trainer.application.service import ProgressionService
from typemaster.trainer.domain.models import UserRecord

from tests.drivers.fakes import FakeClock, ManualTimerFactory


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def repo(store):
    return TypeMasterRepository(store)


@pytest.fixture
def sqlite_repo():
    """Repository backed by a clean in-memory SQLite database."""
    db_manager = DatabaseManager(db_path=":memory:")
    yield TypeMasterRepository(SQLiteStore(db_manager))
    db_manager.close()


@pytest.fixture
def service(repo):
    return ProgressionService(repo)


@pytest.fixture
def sample_user():
    return UserRecord(id="u-1", username="Alice", email="alice@example.com")


@pytest.fixture
def registered_user(repo, sample_user):
    repo.add_user(sample_user)
    repo.set_current_user(sample_user)
    return sample_user
