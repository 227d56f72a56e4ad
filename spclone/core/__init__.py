# -*- coding: utf-8 -*-
# Re-exports für Kernklassen und Subpackages

from .auth import TokenProvider, StaticTokenProvider
from .http import SharePointClient, SharePointError, NotFound
from .odata import OData
from .logbuffer import MigrationLog, as_log

# Subpackage als Attribut verfügbar machen (kein Selbst-Import!)
from . import config as config          # setzt spclone/core/config/__init__.py voraus

__all__ = [
    "TokenProvider",
    "StaticTokenProvider",
    "SharePointClient",
    "SharePointError",
    "NotFound",
    "OData",
    "MigrationLog",
    "as_log",
    "config",
]
