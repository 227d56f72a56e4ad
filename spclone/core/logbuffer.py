# logbuffer.py
# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.core.logbuffer — Migrations-Log: Print + Puffer → DataFrame
===============================================================================
Zweck:
    - Das Migrations-Log ist das einzige beobachtbare Audit-Artefakt eines Laufs.
      Jede Komponente bekommt dieselbe Instanz und hängt nur an (append-only).
    - MigrationLog
        * schreibt optional sofort auf die Konsole (print)
        * puffert strukturierte Einträge {ts, level, message, **context}
        * reicht jede Zeile optional an einen Sink weiter (UI-Panel, Datei, …)
    - Export als Liste von dicts, als Zeilen (messages) oder pandas-DataFrame.

Besonderheiten:
    - Maskiert sensible Schlüssel (client_secret, password, token, …)
    - Level: DEBUG/INFO/WARNING/ERROR
    - ISO8601 Zeitstempel (UTC)
    - as_log(...) macht aus einem beliebigen Callable[[str], Any] ein Log.

Beispiel:
    log = MigrationLog(echo=False)
    log.info("Created list", list="Tasks")
    log.warning("Failed to create field", field="Status", error="HTTP 400 ...")
    df = log.to_df()

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from .util import mask_secrets

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class MigrationLog:
    """
    Append-only Logger:
        - echo: sofort in Konsole ausgeben
        - sink: optionaler Empfänger je formatierter Zeile
        - min_level: Einträge darunter werden verworfen (Default: DEBUG → alles)
        - mask_keys: Keys, deren Werte in context maskiert werden
    """
    echo: bool = True
    sink: Optional[Callable[[str], Any]] = None
    min_level: str = "DEBUG"
    mask_keys: Sequence[str] = field(default=("client_secret", "password", "secret", "token"))

    _entries: List[Dict[str, Any]] = field(default_factory=list, init=False)

    # ------------------------------ Basis-API ---------------------------------

    def log(self, level: str, message: str, **context: Any) -> None:
        """Allgemeiner Logeintrag."""
        level = level.upper()
        if level not in LEVELS:
            level = "INFO"
        if LEVELS.index(level) < LEVELS.index(self.min_level.upper()):
            return
        ts = datetime.now(timezone.utc).isoformat()
        ctx_masked = mask_secrets(context, mask_keys=self.mask_keys) if context else {}
        entry = {"ts": ts, "level": level, "message": message, **ctx_masked}
        self._entries.append(entry)
        line = self.format_entry(entry)
        if self.echo:
            print(f"[{level}] {ts} {line}")
        if self.sink is not None:
            self.sink(line)

    # ------------------------------ Komfort-API -------------------------------

    def debug(self, message: str, **context: Any) -> None:
        self.log("DEBUG", message, **context)

    def info(self, message: str, **context: Any) -> None:
        self.log("INFO", message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.log("WARNING", message, **context)

    def error(self, message: str, **context: Any) -> None:
        self.log("ERROR", message, **context)

    # ------------------------------ Export-API --------------------------------

    @staticmethod
    def format_entry(entry: Dict[str, Any]) -> str:
        """Kompakte, menschenlesbare Zeile: 'message | k=v k2=v2'."""
        kv = " ".join(f"{k}={v}" for k, v in entry.items() if k not in ("ts", "level", "message"))
        return entry["message"] + (f" | {kv}" if kv else "")

    def messages(self, level: Optional[str] = None) -> List[str]:
        """Formatierte Zeilen in Einfügereihenfolge (optional nur ein Level)."""
        lvl = level.upper() if level else None
        return [self.format_entry(e) for e in self._entries if lvl is None or e["level"] == lvl]

    def to_list(self) -> List[Dict[str, Any]]:
        """Rohdaten (Liste von dicts)."""
        return list(self._entries)

    def to_df(self) -> pd.DataFrame:
        """Export nach pandas.DataFrame (Spalten ts, level, message + Kontext-Keys)."""
        if not self._entries:
            return pd.DataFrame(columns=["ts", "level", "message"])
        return pd.DataFrame(self._entries)

    # ------------------------------ Extras ------------------------------------

    def count(self, level: str) -> int:
        return sum(1 for e in self._entries if e["level"] == level.upper())

    def __len__(self) -> int:
        return len(self._entries)


def as_log(sink: Any) -> Any:
    """
    Liefert ein Log-Objekt mit .log/.info/.warning/.error:
        - None            → stilles MigrationLog (echo=False)
        - Log-Objekt      → unverändert
        - Callable[[str]] → MigrationLog, das jede Zeile an das Callable reicht
    """
    if sink is None:
        return MigrationLog(echo=False)
    if callable(getattr(sink, "log", None)) and callable(getattr(sink, "warning", None)):
        return sink
    if callable(sink):
        return MigrationLog(echo=False, sink=sink)
    raise TypeError("log sink must be a MigrationLog-compatible object or a callable")


__all__ = ["MigrationLog", "as_log", "LEVELS"]
