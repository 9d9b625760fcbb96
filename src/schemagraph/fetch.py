from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading
from typing import Any, Protocol

from .errors import FetchError


class SchemaFetcher(Protocol):
    def fetch(self, uri: str) -> bytes: ...


@dataclass
class HttpSchemaFetcher:
    timeout_seconds: float = 10.0
    cancel_event: threading.Event | None = None
    transport: Any = None
    _http: Any = field(init=False)

    def __post_init__(self) -> None:
        import httpx

        self._logger = logging.getLogger(__name__)
        self._http = httpx.Client(
            timeout=self.timeout_seconds,
            transport=self.transport,
            follow_redirects=True,
        )

    def fetch(self, uri: str) -> bytes:
        """Download ``uri``; the cancel event is checked before the request
        and between body chunks, so connecting is bounded only by the timeout.
        """
        import httpx

        self._check_cancelled(uri)
        self._logger.debug("fetching external schema %s", uri)
        chunks: list[bytes] = []
        try:
            with self._http.stream(
                "GET",
                uri,
                headers={"Accept": "application/schema+json, application/json"},
            ) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes():
                    self._check_cancelled(uri)
                    chunks.append(chunk)
        except httpx.TimeoutException as exc:
            raise FetchError(
                uri, f"timed out after {self.timeout_seconds:g}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise FetchError(uri, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(uri, str(exc) or type(exc).__name__) from exc
        return b"".join(chunks)

    def close(self) -> None:
        self._http.close()

    def _check_cancelled(self, uri: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise FetchError(uri, "fetch cancelled")
