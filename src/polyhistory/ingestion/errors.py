"""API error taxonomy: one error type tagged with an ErrorKind."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    HTTP = "http"  # any other non-2xx status
    TRANSPORT = "transport"  # connect/read timeouts, DNS, resets
    DECODE = "decode"  # body is not the JSON shape we expect


class ApiError(Exception):
    """Failure talking to Gamma or CLOB. Callers branch on `kind`, not subclass."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.url = url

    @property
    def retryable(self) -> bool:
        """Transient at the page level: transport failures and non-2xx statuses."""
        return self.kind in (ErrorKind.TRANSPORT, ErrorKind.HTTP, ErrorKind.RATE_LIMITED)

    def __repr__(self) -> str:
        return f"ApiError({str(self)!r}, kind={self.kind.value}, status_code={self.status_code})"
