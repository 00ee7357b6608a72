import hashlib
import hmac
import secrets

from typemaster.config import GameConfig
from typemaster.shared.telemetry import Telemetry, measure_time
from typemaster.trainer.adapters.repository import TypeMasterRepository
from typemaster.trainer.domain.errors import (
    InvalidPasswordError,
    MissingFieldError,
    UserNotFoundError,
    UsernameTakenError,
)
from typemaster.trainer.domain.models import UserRecord

_ITERATIONS = 100_000


def hash_password(password: str, salt: str | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt), _ITERATIONS
    )
    return f"pbkdf2_sha256${_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        _, iterations, salt, expected = encoded.split("$")
        digest = hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), bytes.fromhex(salt), int(iterations)
        )
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), expected)


class AuthService:
    """
    Placeholder account flow: register, login, logout.
    Validation failures raise before anything is written.
    """

    def __init__(self, repo: TypeMasterRepository) -> None:
        self.repo = repo
        self.telemetry = Telemetry("AuthService")

    @measure_time("register")
    def register(self, username: str, email: str, password: str | None = None) -> UserRecord:
        username = (username or "").strip()
        email = (email or "").strip()
        if not username:
            raise MissingFieldError("username")
        if not email:
            raise MissingFieldError("email")
        if self.repo.find_user(username) is not None:
            raise UsernameTakenError(username)

        user = UserRecord(
            username=username,
            email=email,
            avatar=GameConfig.avatar_url(username),
            password_hash=hash_password(password) if password else None,
        )
        self.repo.add_user(user)
        self.repo.set_current_user(user)
        self.telemetry.log_info("User registered", user_id=user.id)
        return user

    @measure_time("login")
    def login(self, username: str, password: str | None = None) -> UserRecord:
        username = (username or "").strip()
        if not username:
            raise MissingFieldError("username")

        user = self.repo.find_user(username)
        if user is None:
            raise UserNotFoundError(username)

        if user.password_hash is not None:
            if not password or not verify_password(password, user.password_hash):
                raise InvalidPasswordError()

        self.repo.set_current_user(user)
        self.telemetry.log_info("User logged in", user_id=user.id)
        return user

    def logout(self) -> None:
        self.repo.set_current_user(None)

    def current_user(self) -> UserRecord | None:
        return self.repo.get_current_user()
