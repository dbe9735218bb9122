"""ctypes forwarding layer over the FoundationDB C client.

``fdb_select_api_version`` only exists in ``fdb_c.h`` as a function-like
macro expanding to ``fdb_select_api_version_impl(v, FDB_API_VERSION)``,
so nothing can bind to it directly. :meth:`CtypesLibrary.select_api_version`
is that macro as an ordinary callable.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import sys
from typing import Protocol

from .config import HEADER_VERSION, AppConfig
from .exceptions import API_VERSION_INVALID, C_INT_MAX, C_INT_MIN, ConfigError, NativeLinkageError

LOGGER = logging.getLogger(__name__)

_DEFAULT_NAMES = {
    "darwin": "libfdb_c.dylib",
    "win32": "fdb_c.dll",
}


class NativeLibrary(Protocol):
    """The subset of libfdb_c the version gate talks to."""

    def select_api_version(self, runtime_version: int) -> int: ...

    def get_max_api_version(self) -> int: ...

    def get_error(self, code: int) -> str: ...


def _resolve_library_name(path: str | None, name: str = "fdb_c") -> str:
    if path:
        return path
    found = ctypes.util.find_library(name)
    if found:
        return found
    return _DEFAULT_NAMES.get(sys.platform, f"lib{name}.so")


class CtypesLibrary:
    """libfdb_c loaded through ctypes."""

    def __init__(self, path: str | None = None, *, header_version: int = HEADER_VERSION, name: str = "fdb_c") -> None:
        if not 0 < header_version <= C_INT_MAX:
            raise ConfigError("header version must fit in a C int", context={"header_version": header_version})
        self.header_version = header_version
        self.path = _resolve_library_name(path, name)
        try:
            self._lib = ctypes.CDLL(self.path)
        except OSError as exc:
            raise NativeLinkageError(
                "Unable to load the FoundationDB C library",
                exc,
                context={"path": self.path},
            ) from exc
        try:
            self._select_impl = self._lib.fdb_select_api_version_impl
            self._get_max = self._lib.fdb_get_max_api_version
            self._get_error = self._lib.fdb_get_error
        except AttributeError as exc:
            raise NativeLinkageError(
                "FoundationDB C library is missing a required symbol",
                exc,
                context={"path": self.path},
            ) from exc
        self._select_impl.argtypes = [ctypes.c_int, ctypes.c_int]
        self._select_impl.restype = ctypes.c_int
        self._get_max.argtypes = []
        self._get_max.restype = ctypes.c_int
        self._get_error.argtypes = [ctypes.c_int]
        self._get_error.restype = ctypes.c_char_p
        LOGGER.debug("Loaded %s (header version %d)", self.path, header_version)

    @classmethod
    def from_config(cls, config: AppConfig) -> "CtypesLibrary":
        return cls(
            config.library.path,
            header_version=config.version.header_version,
            name=config.library.name,
        )

    def select_api_version(self, runtime_version: int) -> int:
        if not C_INT_MIN <= runtime_version <= C_INT_MAX:
            return API_VERSION_INVALID
        return int(self._select_impl(runtime_version, self.header_version))

    def get_max_api_version(self) -> int:
        return int(self._get_max())

    def get_error(self, code: int) -> str:
        raw = self._get_error(code)
        return raw.decode("utf-8", "replace") if raw else ""
