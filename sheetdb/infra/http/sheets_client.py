from __future__ import annotations

from typing import Any, Sequence
from urllib.parse import quote

import httpx

from sheetdb.common.sanitize import truncateText
from sheetdb.domain.error_codes import ErrorCode
from sheetdb.errors import AppError
from sheetdb.infra.http.auth import TokenProviderProtocol

SHEETS_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class ApiError(AppError):
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body_snippet: str | None = None,
        details: dict | None = None,
        code: str | None = None,
        response: httpx.Response | None = None,
    ):
        """
        Назначение:
            Ошибка HTTP/API уровня SheetsApiClient.
        Контракт:
            - code: NETWORK_ERROR, INVALID_JSON или код по HTTP-статусу.
            - response: исходный ответ для диагностики (если был).
        """
        super().__init__(
            category="api",
            code=code or ErrorCode.from_status(status_code).value,
            message=message,
            retryable=False,
            details=details or {},
        )
        self.status_code = status_code
        self.body_snippet = body_snippet
        self.response = response


class SheetsApiClient:
    """
    Назначение/ответственность:
        Асинхронный клиент Google Sheets values API (чтение/запись диапазонов).
    Ограничения:
        - Одна попытка на вызов, ретраи не выполняются.
        - Сериализацию вызовов обеспечивает Database.exec, клиент её не знает.
    """

    def __init__(
        self,
        token_provider: TokenProviderProtocol,
        baseUrl: str = SHEETS_BASE_URL,
        timeoutSeconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.baseUrl = baseUrl.rstrip("/")
        self.token_provider = token_provider
        self.client = httpx.AsyncClient(
            base_url=self.baseUrl,
            timeout=timeoutSeconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "SheetsApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _headers(self) -> dict[str, str]:
        token = await self.token_provider.get_token()
        return {
            "accept": "application/json",
            "authorization": f"Bearer {token}",
        }

    @staticmethod
    def _values_path(spreadsheet_id: str, range_: str) -> str:
        return f"/{quote(spreadsheet_id, safe='')}/values/{quote(range_, safe='!:')}"

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any],
        json: Any | None = None,
    ) -> Any:
        """Один запрос без ретраев: 200 -> JSON, иначе ApiError."""
        headers = await self._headers()
        try:
            resp = await self.client.request(method, path, params=params, json=json, headers=headers)
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise ApiError(
                f"Network error: {exc}",
                code=ErrorCode.NETWORK_ERROR.value,
                details={"method": method, "path": path},
            ) from exc

        if resp.status_code != 200:
            body_snippet = truncateText(resp.text, 200) if resp.text else None
            raise ApiError(
                f"HTTP {resp.status_code} on {method} {path}",
                status_code=resp.status_code,
                body_snippet=body_snippet,
                details={"body_snippet": body_snippet, "method": method, "path": path},
                response=resp,
            )
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise ApiError(
                "Invalid JSON response",
                status_code=resp.status_code,
                code=ErrorCode.INVALID_JSON.value,
                response=resp,
            ) from exc

    async def read_range(self, spreadsheet_id: str, range_: str) -> list[list[Any]]:
        """
        Контракт:
            Значения без форматирования, даты как serial number, по строкам.
            Пустой диапазон -> [].
        """
        data = await self._request(
            "GET",
            self._values_path(spreadsheet_id, range_),
            params={
                "valueRenderOption": "UNFORMATTED_VALUE",
                "dateTimeRenderOption": "SERIAL_NUMBER",
                "majorDimension": "ROWS",
            },
        )
        values = data.get("values") if isinstance(data, dict) else None
        return values or []

    async def update_range(
        self,
        spreadsheet_id: str,
        range_: str,
        data: Sequence[Sequence[Any]],
    ) -> None:
        await self._request(
            "PUT",
            self._values_path(spreadsheet_id, range_),
            params={"valueInputOption": "RAW"},
            json={
                "range": range_,
                "majorDimension": "ROWS",
                "values": [list(row) for row in data],
            },
        )


__all__ = ["ApiError", "SheetsApiClient", "SHEETS_BASE_URL"]
