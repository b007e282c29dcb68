from typing import Dict, List


class CMSError(Exception):
    """Base class for every error the service layer raises on purpose."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CMSError):
    """User-correctable input problem, reported per field."""

    def __init__(self, errors: Dict[str, List[str]], message: str = "The given data was invalid."):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    def __str__(self):
        details = "; ".join(f"{field}: {' '.join(msgs)}" for field, msgs in self.errors.items())
        return f"{self.message} ({details})" if details else self.message


class NotFoundError(CMSError):
    pass


class ConflictError(CMSError):
    pass
