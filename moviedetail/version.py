"""Version string reported by the movie detail service.

An installed ``movie-detail-service`` distribution wins; a source checkout
reads ``APP_VERSION`` from the environment and otherwise reports
``0.0.0-dev``.  The value ends up in the OpenAPI document and in the
``service.version`` attribute of exported traces.
"""

from __future__ import annotations

import os
from importlib.metadata import PackageNotFoundError, version as pkg_version

PACKAGE_NAME = "movie-detail-service"
DEV_VERSION = "0.0.0-dev"

try:
    __version__: str = pkg_version(PACKAGE_NAME)
except PackageNotFoundError:
    __version__ = os.getenv("APP_VERSION", DEV_VERSION)

__all__ = ["__version__", "PACKAGE_NAME"]
