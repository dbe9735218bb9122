"""Initialization helpers for code built on top of the C client."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from .config import AppConfig
from .exceptions import ApiVersionUnsetError
from .gate import VersionGate, get_default_gate

LOGGER = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def initialize(
    api_version: int | None = None,
    *,
    config: AppConfig | None = None,
    gate: VersionGate | None = None,
) -> int:
    """Select the API version as the first step of client start-up.

    The version is ``api_version`` when given, otherwise ``FDBC_API_VERSION``
    from the environment, otherwise the default the binding targets.
    Returns the version now in effect.
    """

    gate = gate or get_default_gate()
    if api_version is None:
        config = config or AppConfig.from_env()
        api_version = config.version.api_version
    gate.select_api_version(api_version)
    LOGGER.debug("Client initialized at API version %d", api_version)
    return api_version


def require_api_version(gate: VersionGate | None = None) -> int:
    """Return the selected version or raise :class:`ApiVersionUnsetError`."""

    selected = (gate or get_default_gate()).selected_version
    if selected is None:
        raise ApiVersionUnsetError()
    return selected


def requires_api_version(func: F) -> F:
    """Refuse to run ``func`` until the process-wide gate has a version."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        require_api_version()
        return func(*args, **kwargs)

    return cast(F, wrapper)
