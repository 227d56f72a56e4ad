# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.core.config.settings — Migrations-Settings (JSON + ENV)
===============================================================================
Zweck
-----
Liest die Laufzeit-Einstellungen der Listen-Migration aus einer `config.json`
und/oder aus Umgebungsvariablen und normalisiert sie zu `MigrationSettings`.

Highlights
----------
- Dot-Path-Resolver für Knotenpunkte, z. B. "jobs.migration"
- ENV-Overrides (case-insensitive), z. B. `SPCLONE_PROPAGATION_TIMEOUT`
- Fehlerhafte Einzelwerte fallen auf den Default zurück (Warnung in info)

Beispiel (JSON)
---------------
{
  "migration": {
    "propagation_timeout": 45,
    "propagation_interval": 3,
    "request_timeout": 90,
    "copy_items": true
  }
}

Beispiel (ENV)
--------------
SPCLONE_PROPAGATION_TIMEOUT=45
SPCLONE_MAX_RETRIES=0
SPCLONE_COPY_VIEWS=false

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union
import json
import os

from spclone.params.schema import coerce_bool, coerce_float, coerce_int

__version__ = "1.0.0"


@dataclass(frozen=True)
class MigrationSettings:
    """Normalisierte Einstellungen eines Migrationslaufs."""
    propagation_timeout: float = 30.0   # max. Wartezeit, bis neue Felder sichtbar sind
    propagation_interval: float = 2.0   # Abstand zwischen zwei Feld-Abfragen
    request_timeout: int = 60
    max_retries: int = 0                # 0 = keine automatischen Wiederholungen
    default_row_limit: int = 30
    page_size: int = 500
    copy_views: bool = True
    copy_items: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ------------------------------ Internals ------------------------------------

_ENV_KEYS: Dict[str, Iterable[str]] = {
    "propagation_timeout": ("SPCLONE_PROPAGATION_TIMEOUT",),
    "propagation_interval": ("SPCLONE_PROPAGATION_INTERVAL",),
    "request_timeout": ("SPCLONE_REQUEST_TIMEOUT", "SPCLONE_TIMEOUT"),
    "max_retries": ("SPCLONE_MAX_RETRIES",),
    "default_row_limit": ("SPCLONE_DEFAULT_ROW_LIMIT", "SPCLONE_ROW_LIMIT"),
    "page_size": ("SPCLONE_PAGE_SIZE",),
    "copy_views": ("SPCLONE_COPY_VIEWS",),
    "copy_items": ("SPCLONE_COPY_ITEMS",),
}

_COERCERS = {
    float: coerce_float,
    int: coerce_int,
    bool: coerce_bool,
}


def _first_env(keys: Iterable[str]) -> Optional[str]:
    """Sucht den ersten gesetzten ENV-Wert (case-insensitive) aus einer Kandidatenliste."""
    lowered = {k.lower(): k for k in os.environ.keys()}
    for key in keys:
        k = key.strip()
        if not k:
            continue
        v = os.environ.get(k)
        if v is not None:
            return v
        real = lowered.get(k.lower())
        if real and os.environ.get(real) is not None:
            return os.environ[real]
    return None


def _dot_get(d: Mapping[str, Any], path: str) -> Optional[Mapping[str, Any]]:
    """Holt einen verschachtelten Knoten mittels Dot-Path ("a.b.c")."""
    cur: Any = d
    for seg in (path or "").split("."):
        seg = seg.strip()
        if not seg:
            continue
        if not isinstance(cur, Mapping) or seg not in cur:
            return None
        cur = cur[seg]
    return cur if isinstance(cur, Mapping) else None


def _load_json(path: Union[str, Path]) -> Mapping[str, Any]:
    p = Path(path)
    return json.loads(p.read_text(encoding="utf-8"))


# ------------------------------ Public API: Load ------------------------------

def load_migration_settings(*,
                            config_path: Optional[Union[str, Path]] = None,
                            node: str = "migration",
                            env_override: bool = True,
                            overrides: Optional[Mapping[str, Any]] = None) -> Tuple[MigrationSettings, Dict[str, Any]]:
    """
    Lädt Settings aus JSON (optional), ENV (optional) und expliziten Overrides.

    Priorität: Defaults < JSON-Knoten < ENV < overrides

    Rückgabe
    --------
    (settings, info)
        settings : MigrationSettings
        info     : Diagnostics (source, node_path, used_env_vars, warnings)
    """
    info: Dict[str, Any] = {"node_path": node, "used_env_vars": {}, "warnings": [], "source": "defaults"}
    raw: Dict[str, Any] = {}

    # 1) JSON laden & zum Knoten navigieren
    if config_path is not None and Path(config_path).exists():
        try:
            cfg = _load_json(config_path)
        except (OSError, ValueError) as ex:
            info["warnings"].append(f"JSON load error: {type(ex).__name__}: {ex}")
        else:
            node_map = _dot_get(cfg, node) if node else cfg
            if node_map is None:
                info["warnings"].append(f"Node '{node}' not found in JSON; using defaults.")
            else:
                raw.update(node_map)
                info["source"] = "json"
            info["config_path"] = str(config_path)
    elif config_path is not None:
        info["warnings"].append(f"Config file not found: {config_path}")

    # 2) ENV-Overrides (optional)
    if env_override:
        for name, keys in _ENV_KEYS.items():
            val = _first_env(keys)
            if val is not None:
                raw[name] = val
                info["used_env_vars"][name] = True
        if info["used_env_vars"]:
            info["source"] = "json+env" if info["source"] == "json" else "env"

    # 3) Explizite Overrides (z. B. CLI)
    for k, v in (overrides or {}).items():
        if v is not None:
            raw[k] = v

    # 4) Coercion je Feld (unbekannte Keys ignorieren)
    values: Dict[str, Any] = {}
    for f in fields(MigrationSettings):
        if f.name not in raw:
            continue
        coercer = _COERCERS[type(f.default)]
        val = coercer(raw[f.name], None)
        if val is None:
            info["warnings"].append(f"Invalid value for {f.name!r}: {raw[f.name]!r}; using default {f.default!r}.")
            continue
        values[f.name] = val

    settings = MigrationSettings(**values)
    if settings.propagation_interval <= 0:
        info["warnings"].append("propagation_interval must be > 0; using 1.0.")
        settings = MigrationSettings(**{**settings.as_dict(), "propagation_interval": 1.0})
    return settings, info


__all__ = ["MigrationSettings", "load_migration_settings", "__version__"]
