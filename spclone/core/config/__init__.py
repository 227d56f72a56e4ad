# -*- coding: utf-8 -*-
# Re-Exports aus settings
from .settings import MigrationSettings, load_migration_settings, __version__

__all__ = ["MigrationSettings", "load_migration_settings", "__version__"]
