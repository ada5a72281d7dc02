"""docshelf: an MCP server that indexes remote documentation and reads it back in pages."""

from __future__ import annotations

import warnings
from importlib.metadata import PackageNotFoundError, version

_DISTRIBUTION = "docshelf"
_UNKNOWN_VERSION = "0.0.0+unknown"

try:
    __version__ = version(_DISTRIBUTION)
except PackageNotFoundError:
    # Running from a checkout that was never installed
    warnings.warn(
        f"docshelf is not installed; reporting version {_UNKNOWN_VERSION}.",
        RuntimeWarning,
        stacklevel=2,
    )
    __version__ = _UNKNOWN_VERSION
