"""One-time API version selection for the FoundationDB C client."""

__version__ = "1.0.0"

from .binding import initialize, require_api_version, requires_api_version
from .exceptions import (
    AlreadySelectedDifferentVersionError,
    ApiVersionUnsetError,
    GateError,
    NativeLinkageError,
    UnsupportedVersionError,
)
from .gate import (
    VersionGate,
    get_api_version,
    is_api_version_selected,
    select_api_version,
)

__all__ = [
    "AlreadySelectedDifferentVersionError",
    "ApiVersionUnsetError",
    "GateError",
    "NativeLinkageError",
    "UnsupportedVersionError",
    "VersionGate",
    "get_api_version",
    "initialize",
    "is_api_version_selected",
    "require_api_version",
    "requires_api_version",
    "select_api_version",
]
