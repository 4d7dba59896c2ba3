"""
Diagnostics sink for recovered failures.

The store never raises for corrupt persisted state or failed reply streams;
it reports them here instead.
"""

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class DiagnosticsSink(Protocol):
    def report(self, event: str, error: BaseException | None = None, **context: Any) -> None:
        ...


class LoggingDiagnosticsSink:
    """Report recovered failures through the standard logging tree."""

    def __init__(self, logger_name: str | None = None) -> None:
        self._logger = logging.getLogger(logger_name) if logger_name else logger

    def report(self, event: str, error: BaseException | None = None, **context: Any) -> None:
        extra = {"event": event, **context}
        if error is not None:
            extra["error_type"] = type(error).__name__
            self._logger.error(f"{event}: {error}", extra=extra, exc_info=error)
        else:
            self._logger.warning(event, extra=extra)
