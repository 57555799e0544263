"""HTTP transport for one gateway call."""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from types import TracebackType
from typing import Any, Self
from urllib.parse import urlsplit

import requests

from tradegate.domain.models import EMPTY, Credentials, EmptyResult
from tradegate.errors import MalformedResponseError, RemoteError, TransportError


class TransportClient:
    """Authenticated REST client bound to one credential pair.

    Requests are sent exactly once. Upstream errors are surfaced with their
    status and body untouched; order placement is not idempotent, so nothing
    here retries.
    """

    def __init__(
        self,
        credentials: Credentials,
        timeout: int = 15,
        session: requests.Session | None = None,
    ) -> None:
        self.mode = credentials.mode
        self.timeout = timeout
        self.logger = logging.getLogger("tradegate.transport")
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "APCA-API-KEY-ID": credentials.api_key,
                "APCA-API-SECRET-KEY": credentials.secret_key,
                "Content-Type": "application/json",
            }
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def send(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any | EmptyResult:
        """Send a trading request; 204 and empty bodies map to ``EMPTY``."""
        return self._request(method, url, params=params, body=body)

    def fetch_data(self, url: str, params: dict[str, str] | None = None) -> Any:
        """GET a market-data resource, which always carries a JSON body."""
        payload = self._request("GET", url, params=params)
        if isinstance(payload, EmptyResult):
            raise MalformedResponseError(
                f"empty body from {urlsplit(url).path}",
                mode=self.mode,
            )
        return payload

    def _request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any | EmptyResult:
        path = urlsplit(url).path
        self.logger.debug("request | %s | %s %s", self.mode.label, method, path)
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params or None,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            self.logger.warning(
                "transport error | %s | %s %s | %s", self.mode.label, method, path, exc
            )
            raise TransportError(
                f"Alpaca request failed for {method} {path}: {exc}",
                mode=self.mode,
            ) from exc

        status = int(response.status_code)
        text = response.text or ""
        self.logger.debug("response | %s | %s %s | %s", self.mode.label, method, path, status)

        if status < 200 or status >= 300:
            self.logger.warning(
                "remote error | %s | %s %s | %s", self.mode.label, method, path, status
            )
            raise RemoteError(status, text, mode=self.mode)

        if status == 204 or not text.strip():
            return EMPTY

        try:
            return json.loads(text, parse_float=Decimal)
        except ValueError as exc:
            raise MalformedResponseError(
                f"response for {path} was not valid JSON",
                status=status,
                body=text,
                mode=self.mode,
            ) from exc
