from __future__ import annotations

from typing import Any

import requests

from rocal.core.errors import RocalError

DEFAULT_TIMEOUT_S = 10.0
ERROR_MESSAGE_KEYS = ("message", "msg", "error_description", "error")


class SupabaseError(RocalError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ERROR_MESSAGE_KEYS:
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    text = (response.text or "").strip()
    return text or f"Supabase request failed with HTTP {response.status_code}."


def _eq(value: object) -> str:
    return f"eq.{value}"


class SupabaseClient:
    def __init__(self, base_url: str, api_key: str, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_s = timeout_s

    def _headers(self, access_token: str | None = None, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        access_token: str | None = None,
        prefer: str | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(access_token, prefer),
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            message = "Supabase unavailable. Check SUPABASE_URL and network connectivity."
            raise SupabaseError(message) from exc
        if response.status_code >= 400:
            raise SupabaseError(_error_message(response), status_code=response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise SupabaseError("Supabase returned an invalid response.", status_code=response.status_code) from exc

    def select(self, table: str, *, order_column: str = "createdAt", access_token: str | None = None) -> list[dict[str, Any]]:
        payload = self.request(
            "GET",
            f"/rest/v1/{table}",
            params={"select": "*", "order": f"{order_column}.desc"},
            access_token=access_token,
        )
        return list(payload or [])

    def insert(self, table: str, row: dict[str, Any], *, access_token: str | None = None) -> dict[str, Any] | None:
        payload = self.request(
            "POST",
            f"/rest/v1/{table}",
            json=[row],
            access_token=access_token,
            prefer="return=representation",
        )
        return payload[0] if payload else None

    def update(
        self,
        table: str,
        record_id: int | str,
        values: dict[str, Any],
        *,
        access_token: str | None = None,
    ) -> dict[str, Any] | None:
        payload = self.request(
            "PATCH",
            f"/rest/v1/{table}",
            params={"id": _eq(record_id)},
            json=values,
            access_token=access_token,
            prefer="return=representation",
        )
        return payload[0] if payload else None

    def delete(self, table: str, record_id: int | str, *, access_token: str | None = None) -> dict[str, Any] | None:
        payload = self.request(
            "DELETE",
            f"/rest/v1/{table}",
            params={"id": _eq(record_id)},
            access_token=access_token,
            prefer="return=representation",
        )
        return payload[0] if payload else None

    def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        return self.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )

    def refresh_session(self, refresh_token: str) -> dict[str, Any]:
        return self.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )

    def get_user(self, access_token: str) -> dict[str, Any]:
        return self.request("GET", "/auth/v1/user", access_token=access_token)

    def sign_out(self, access_token: str) -> None:
        self.request("POST", "/auth/v1/logout", access_token=access_token)
