from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel


class Identity(BaseModel):
    id: str
    email: str | None = None
    username: str | None = None

    @property
    def display_name(self) -> str:
        return self.email or self.username or self.id


class AuthSession(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None
    user: Identity


@dataclass(frozen=True)
class LoginResult:
    success: bool
    identity: Identity | None = None
    session: AuthSession | None = None
    error: str | None = None
