from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    store_backend: Literal["sql", "supabase"] = "sql"
    database_url: str | None = None
    dev_mode: bool = True
    secret_key: str | None = None
    admin_username: str | None = None
    admin_password: str | None = None
    session_cookie_name: str = "rocal_session"
    session_ttl_days: int = 7
    log_level: str = "INFO"

    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    supabase_timeout_s: float = 10.0
    suppliers_table: str = "proveedores"
    materials_table: str = "materiales"
    piecework_table: str = "destajos"

    @property
    def session_cookie_secure(self) -> bool:
        return not self.dev_mode

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_days * 24 * 60 * 60

    @property
    def required_secret_key(self) -> str:
        if self.secret_key:
            return self.secret_key
        if self.dev_mode:
            return "rocal-dev-secret"
        raise RuntimeError("SECRET_KEY must be set when DEV_MODE=false.")

    @property
    def required_supabase_url(self) -> str:
        if not self.supabase_url:
            raise RuntimeError("SUPABASE_URL must be set when STORE_BACKEND=supabase.")
        return self.supabase_url.rstrip("/")

    @property
    def required_supabase_anon_key(self) -> str:
        if not self.supabase_anon_key:
            raise RuntimeError("SUPABASE_ANON_KEY must be set when STORE_BACKEND=supabase.")
        return self.supabase_anon_key

    @property
    def sqlalchemy_database_uri(self) -> str:
        if self.database_url:
            return self.database_url
        repo_root = Path(__file__).resolve().parents[3]
        default_path = repo_root / "data" / "rocal.db"
        return f"sqlite:///{default_path}"

    @property
    def table_names(self) -> dict[str, str]:
        return {
            "suppliers": self.suppliers_table,
            "materials": self.materials_table,
            "piecework": self.piecework_table,
        }


settings = Settings()
