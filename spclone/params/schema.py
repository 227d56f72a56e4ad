# schema.py
# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.params.schema — Job-Parameter: Typumwandlung & Pflichtprüfung
===============================================================================
Ein Migrationsjob beschreibt genau eine Liste (Quelle → Ziel). Seine Parameter
kommen aus CLI, JSON-Datei und Umgebung und sind dort fast immer Strings;
hier werden sie in Python-Werte überführt und geprüft.

    - JobField: Name, Typ ('str' | 'bool' | 'path'), Default, Aliase, erlaubte Werte
    - ParamSchema: bündelt die Felder, löst Aliase auf (case-insensitiv)
      und liefert (clean, errors)

Die coerce_*-Funktionen werden auch von core.config.settings genutzt
(Timeouts, Retries, Flags aus der Umgebung).

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

_TRUE = frozenset({"1", "true", "t", "y", "yes", "on", "ja"})
_FALSE = frozenset({"0", "false", "f", "n", "no", "off", "nein"})


# ------------------------------- Umwandlung -----------------------------------

def coerce_bool(val: Any, default: Optional[bool] = None) -> Optional[bool]:
    if isinstance(val, bool):
        return val
    token = "" if val is None else str(val).strip().lower()
    if token in _TRUE:
        return True
    if token in _FALSE:
        return False
    return default


def _numeric(cast: Callable[[Any], Any]) -> Callable[[Any, Any], Any]:
    # bool ist int-Subklasse; True soll nicht als 1 durchrutschen
    def convert(val: Any, default: Any = None) -> Any:
        if val is None or isinstance(val, bool) or not str(val).strip():
            return default
        try:
            return cast(val)
        except (TypeError, ValueError):
            return default

    return convert


coerce_int = _numeric(int)
coerce_float = _numeric(float)


def coerce_str(val: Any, default: Optional[str] = None) -> Optional[str]:
    text = "" if val is None else str(val).strip()
    return text or default


def coerce_path(val: Any, default: Optional[Path] = None) -> Optional[Path]:
    text = coerce_str(val)
    return Path(text).expanduser() if text else default


_COERCERS: Dict[str, Callable[[Any, Any], Any]] = {
    "str": coerce_str,
    "bool": coerce_bool,
    "path": coerce_path,
}


# --------------------------------- Schema -------------------------------------

@dataclass(frozen=True)
class JobField:
    name: str
    kind: str = "str"
    required: bool = False
    default: Any = None
    choices: Optional[Sequence[Any]] = None
    aliases: Sequence[str] = ()

    def coerce(self, value: Any) -> Any:
        return _COERCERS[self.kind](value, self.default)

    def problem(self, value: Any) -> Optional[str]:
        if value is None:
            return f"Missing required parameter: {self.name}" if self.required else None
        if self.choices is not None and value not in self.choices:
            return f"Invalid value for {self.name!r}: {value!r}. Allowed: {tuple(self.choices)}"
        return None


class ParamSchema:
    """
    Felder eines Jobs; unbekannte Keys werden ignoriert.

    >>> s = ParamSchema([JobField("LIST_TITLE", required=True, aliases=("list",))])
    >>> s.coerce_and_validate({"List": " Tasks "})
    ({'LIST_TITLE': 'Tasks'}, [])
    """

    def __init__(self, fields: Iterable[JobField]) -> None:
        self.fields: Dict[str, JobField] = {f.name: f for f in fields}
        self._names: Dict[str, str] = {}
        for f in self.fields.values():
            for key in (f.name, *f.aliases):
                self._names[key.lower()] = f.name

    def canonical_key(self, key: str) -> Optional[str]:
        return self._names.get(str(key).lower())

    def coerce_and_validate(self, raw: Optional[Dict[str, Any]]) -> Tuple[Dict[str, Any], List[str]]:
        given: Dict[str, Any] = {}
        for key, value in (raw or {}).items():
            name = self.canonical_key(key)
            if name is not None:
                given[name] = value

        clean: Dict[str, Any] = {}
        errors: List[str] = []
        for name, f in self.fields.items():
            clean[name] = f.coerce(given.get(name))
            problem = f.problem(clean[name])
            if problem:
                errors.append(problem)
        return clean, errors


def default_migration_job_schema() -> ParamSchema:
    """Quelle, Ziel und Listentitel sind Pflicht; Ansichten/Einträge standardmäßig an."""
    return ParamSchema([
        JobField("SOURCE_URL", required=True, aliases=("source", "source_url")),
        JobField("TARGET_URL", required=True, aliases=("target", "target_url")),
        JobField("LIST_TITLE", required=True, aliases=("list", "list_title")),
        JobField("CopyViews", kind="bool", default=True, aliases=("copy_views",)),
        JobField("CopyItems", kind="bool", default=True, aliases=("copy_items",)),
        JobField("LogFormat", choices=("csv", "json"), aliases=("log_format",)),
        JobField("LogDir", kind="path", aliases=("log_dir",)),
    ])


__all__ = [
    "JobField",
    "ParamSchema",
    "coerce_bool",
    "coerce_int",
    "coerce_float",
    "coerce_str",
    "coerce_path",
    "default_migration_job_schema",
]
