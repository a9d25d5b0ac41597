from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol

from sheetdb.domain.error_codes import ErrorCode
from sheetdb.errors import AppError

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class TokenProviderProtocol(Protocol):
    async def get_token(self) -> str: ...


class AuthError(AppError):
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            category="auth",
            code=ErrorCode.AUTH_FAILED.value,
            message=message,
            retryable=False,
            details=details or {},
        )


class StaticTokenProvider:
    """Готовый bearer-токен (тесты, внешняя выдача токенов)."""

    def __init__(self, token: str):
        if not token:
            raise ValueError("token must not be empty")
        self._token = token

    async def get_token(self) -> str:
        return self._token


class ServiceAccountTokenProvider:
    """
    Назначение/ответственность:
        Выдаёт OAuth2 access token по ключу сервисного аккаунта Google.
    Ограничения:
        - google-auth синхронный: refresh выполняется в отдельном потоке.
        - Токен обновляется только когда истёк или ещё не получен.
    """

    def __init__(self, credentials_file: str, scopes: list[str] | None = None):
        path = Path(credentials_file)
        if not path.is_file():
            raise AuthError(
                f"Credentials file not found: {credentials_file}",
                details={"credentials_file": credentials_file},
            )
        self._credentials_file = str(path)
        self._scopes = list(scopes or SHEETS_SCOPES)
        self._credentials = None

    def _load_credentials(self):
        from google.oauth2 import service_account

        try:
            return service_account.Credentials.from_service_account_file(
                self._credentials_file,
                scopes=self._scopes,
            )
        except ValueError as exc:
            raise AuthError(
                f"Invalid service account file: {exc}",
                details={"credentials_file": self._credentials_file},
            ) from exc

    def _refresh(self) -> str:
        from google.auth.exceptions import RefreshError
        from google.auth.transport.requests import Request

        if self._credentials is None:
            self._credentials = self._load_credentials()
        if not self._credentials.valid:
            try:
                self._credentials.refresh(Request())
            except RefreshError as exc:
                raise AuthError(f"Token refresh failed: {exc}") from exc
        return self._credentials.token

    async def get_token(self) -> str:
        return await asyncio.to_thread(self._refresh)


__all__ = [
    "SHEETS_SCOPES",
    "AuthError",
    "TokenProviderProtocol",
    "StaticTokenProvider",
    "ServiceAccountTokenProvider",
]
