from __future__ import annotations


class RocalError(RuntimeError):
    pass


class AuthRequiredError(RocalError):
    def __init__(self, message: str = "not authenticated") -> None:
        super().__init__(message)


class StoreError(RocalError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class RecordValidationError(RocalError, ValueError):
    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class AuthProviderError(RocalError):
    pass
