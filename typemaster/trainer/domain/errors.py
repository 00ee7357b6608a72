class TypeMasterError(Exception):
    """Base class for every error raised by the engine."""


class ProviderError(TypeMasterError):
    """The text source could not produce a passage (timeout, quota, network)."""


class PersistenceError(TypeMasterError):
    """The key-value store could not be read or written."""


class ValidationError(TypeMasterError):
    """User-facing input problem. Never mutates stored state."""


class MissingFieldError(ValidationError):
    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is required")
        self.field = field


class UsernameTakenError(ValidationError):
    def __init__(self, username: str) -> None:
        super().__init__("Username already taken")
        self.username = username


class UserNotFoundError(ValidationError):
    def __init__(self, username: str) -> None:
        super().__init__("User not found")
        self.username = username


class InvalidPasswordError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Invalid password")
