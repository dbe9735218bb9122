"""Process-wide, select-once API version gate.

The C client only accepts a single ``fdb_select_api_version`` per process
and refuses every other call until one succeeded. :class:`VersionGate`
serializes that step: the first caller registers with the native library,
everyone else either sees the same version (and succeeds silently) or gets
:class:`AlreadySelectedDifferentVersionError`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from .config import AppConfig
from .exceptions import (
    API_VERSION_ALREADY_SET,
    API_VERSION_INVALID,
    C_INT_MAX,
    C_INT_MIN,
    AlreadySelectedDifferentVersionError,
    GateError,
    NativeLinkageError,
    UnsupportedVersionError,
)
from .native import CtypesLibrary, NativeLibrary
from .obs import LogEvent, log_to_logger, metric, span

LOGGER = logging.getLogger(__name__)

LibraryLoader = Callable[[], NativeLibrary]


@dataclass(frozen=True)
class ProcessVersionState:
    """Snapshot of the gate. Replaced wholesale, never mutated."""

    selected: int | None = None
    linkage_error: NativeLinkageError | None = None

    @property
    def is_selected(self) -> bool:
        return self.selected is not None


def load_library_from_env() -> NativeLibrary:
    return CtypesLibrary.from_config(AppConfig.from_env())


class VersionGate:
    """Validate-and-commit-once selection of the client API version."""

    def __init__(self, loader: LibraryLoader | None = None, *, log_event: LogEvent = log_to_logger) -> None:
        self._loader = loader or load_library_from_env
        self._log_event = log_event
        self._lock = threading.Lock()
        self._state = ProcessVersionState()
        self._library: NativeLibrary | None = None

    @property
    def state(self) -> ProcessVersionState:
        return self._state

    @property
    def selected_version(self) -> int | None:
        return self._state.selected

    @property
    def library(self) -> NativeLibrary | None:
        """The native library, once loaded."""

        return self._library

    def select_api_version(self, requested: int) -> None:
        """Select ``requested`` as the process API version.

        Succeeds silently when the same version was already selected. Raises
        :class:`UnsupportedVersionError` when the native client rejects the
        version (the gate stays unselected), :class:`AlreadySelectedDifferentVersionError`
        when another version won earlier, and :class:`NativeLinkageError`
        when the native entry point cannot run at all.
        """

        if isinstance(requested, bool) or not isinstance(requested, int):
            raise TypeError(f"API version must be an int, got {type(requested).__name__}")

        with self._lock:
            state = self._state
            if state.linkage_error is not None:
                raise NativeLinkageError(
                    "FoundationDB C library is unusable in this process",
                    state.linkage_error,
                    context={"requested": requested},
                )
            if state.selected is not None:
                if requested == state.selected:
                    return
                raise AlreadySelectedDifferentVersionError(requested, state.selected)

            if not C_INT_MIN <= requested <= C_INT_MAX:
                error = UnsupportedVersionError(requested, API_VERSION_INVALID)
                LOGGER.warning("%s", error)
                raise error

            library = self._load()
            code = self._register(library, requested)
            if code != 0:
                raise self._rejection(requested, code)
            self._state = ProcessVersionState(selected=requested)

        LOGGER.info("Selected FoundationDB API version %d", requested)

    def reset(self) -> None:
        """Forget any selection. Only meaningful for tests and fake libraries."""

        with self._lock:
            self._state = ProcessVersionState()
            self._library = None

    def _latch(self, error: NativeLinkageError) -> None:
        self._state = ProcessVersionState(linkage_error=error)
        error.log_error(LOGGER)

    def _load(self) -> NativeLibrary:
        if self._library is not None:
            return self._library
        try:
            library = self._loader()
        except NativeLinkageError as exc:
            self._latch(exc)
            raise
        except (OSError, AttributeError) as exc:
            error = NativeLinkageError("Unable to load the FoundationDB C library", exc)
            self._latch(error)
            raise error from exc
        self._library = library
        return library

    def _register(self, library: NativeLibrary, requested: int) -> int:
        with span("native_select_api_version", self._log_event, attrs={"requested": requested}):
            try:
                code = library.select_api_version(requested)
            except NativeLinkageError as exc:
                self._latch(exc)
                raise
            except Exception as exc:
                error = NativeLinkageError(
                    "fdb_select_api_version_impl could not be called",
                    exc,
                    context={"requested": requested},
                )
                self._latch(error)
                raise error from exc
        metric("native_select_api_version", self._log_event, tags={"requested": requested, "code": code})
        return code

    def _rejection(self, requested: int, code: int) -> GateError:
        if code == API_VERSION_ALREADY_SET:
            LOGGER.warning("Native client already has an API version; requested %d", requested)
            return AlreadySelectedDifferentVersionError(requested, None)

        error = UnsupportedVersionError(requested, code)
        LOGGER.warning("%s", error)
        return error


_default_gate = VersionGate()
_default_lock = threading.Lock()


def get_default_gate() -> VersionGate:
    return _default_gate


def reset_default_gate(loader: LibraryLoader | None = None, *, log_event: LogEvent = log_to_logger) -> VersionGate:
    """Install a fresh process-wide gate, e.g. one backed by a fake library."""

    global _default_gate
    with _default_lock:
        _default_gate = VersionGate(loader, log_event=log_event)
        return _default_gate


def select_api_version(requested: int) -> None:
    """Select the API version on the process-wide gate."""

    get_default_gate().select_api_version(requested)


def get_api_version() -> int | None:
    return get_default_gate().selected_version


def is_api_version_selected() -> bool:
    return get_default_gate().state.is_selected
