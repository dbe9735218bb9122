"""Error taxonomy for API version selection."""

from __future__ import annotations

import logging
import traceback
from collections.abc import Mapping
from datetime import datetime
from typing import Any

# fdb_error_t values returned by the C client for version selection.
API_VERSION_UNSET = 2200
API_VERSION_ALREADY_SET = 2201
API_VERSION_INVALID = 2202
API_VERSION_NOT_SUPPORTED = 2203

NATIVE_ERROR_MESSAGES = {
    API_VERSION_UNSET: "API version is not set",
    API_VERSION_ALREADY_SET: "API version may be set only once",
    API_VERSION_INVALID: "API version not valid",
    API_VERSION_NOT_SUPPORTED: "API version not supported",
}

# Range of a C ``int``; ctypes wraps anything outside it without complaint.
C_INT_MIN = -(2**31)
C_INT_MAX = 2**31 - 1


class GateError(Exception):
    """Base error with standardized fields and structured logging."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        *,
        error_code: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.original_error = original_error
        self.error_code = error_code
        self.timestamp = datetime.now()
        self.context = dict(context or {})
        self.traceback = traceback.format_exc() if original_error else None
        super().__init__(self.get_error_message())

    def get_error_message(self) -> str:
        base_msg = f"[{self.error_code}] {self.message}" if self.error_code else self.message
        if self.original_error:
            return f"{base_msg} (caused by {self.original_error.__class__.__name__})"
        return base_msg

    def log_error(self, logger: logging.Logger) -> None:
        payload = {
            "event": "error",
            "timestamp": self.timestamp.isoformat(),
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }
        logger.error("%s", payload)
        if self.traceback:
            logger.debug("traceback=%s", self.traceback)


class ConfigError(GateError):
    """Invalid configuration or environment (e.g., non-integer version)."""

    def __init__(self, message: str, original_error: Exception | None = None, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message, original_error, error_code="config_error", context=context)


class UnsupportedVersionError(GateError):
    """The native client rejected the requested API version."""

    def __init__(self, requested: int, native_code: int, message: str | None = None) -> None:
        self.requested = requested
        self.native_code = native_code
        if message is None:
            message = f"API version {requested} is not supported by the installed FoundationDB C library"
            description = NATIVE_ERROR_MESSAGES.get(native_code)
            if description:
                message += f": {description}"
        super().__init__(
            message,
            error_code="unsupported_version",
            context={"requested": requested, "native_code": native_code},
        )


class AlreadySelectedDifferentVersionError(GateError):
    """A different API version was committed earlier in this process.

    ``selected`` is ``None`` when the version was selected outside the gate
    and only the native client knows it.
    """

    def __init__(self, requested: int, selected: int | None) -> None:
        self.requested = requested
        self.selected = selected
        if selected is None:
            message = "FoundationDB API version already selected by another caller"
        else:
            message = f"FoundationDB API already loaded at version {selected}"
        super().__init__(
            message,
            error_code="already_selected",
            context={"requested": requested, "selected": selected},
        )


class NativeLinkageError(GateError):
    """The native entry point could not be executed. Fatal, never retried."""

    def __init__(self, message: str, original_error: Exception | None = None, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message, original_error, error_code="native_linkage", context=context)


class ApiVersionUnsetError(GateError):
    """A call that needs a selected API version ran before selection."""

    native_code = API_VERSION_UNSET

    def __init__(self, message: str = "API version must be selected before calling into the client") -> None:
        super().__init__(message, error_code="api_version_unset")
