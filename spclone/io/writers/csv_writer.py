# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.io.writers.csv_writer — Migrations-Log als CSV
===============================================================================
Zweck:
    - Exportiert das Log eines Laufs (MigrationLog.to_df()) als CSV-Datei.
    - Namensschema:
        <prefix>[_<YYYYMMDD>_<hhmmss>][_<postfix>].csv
    - Existiert die Datei bereits und overwrite=False, wird _001, _002, …
      angehängt.

Rückgabe:
    - build_csv_name(...): str   (nur Dateiname)
    - write_csv(...):      pathlib.Path (vollständiger Pfad)

Abhängigkeiten:
    * pandas (df.to_csv)
    * spclone.core.util.sanitize_for_filename

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from spclone.core.util import sanitize_for_filename

PathLike = Union[str, os.PathLike, Path]


def build_csv_name(*, prefix: str, postfix: Optional[str] = None, timestamp: bool = True, ext: str = "csv") -> str:
    parts = [sanitize_for_filename(prefix)]
    if timestamp:
        parts.append(datetime.now().strftime("%Y%m%d_%H%M%S"))
    if postfix:
        parts.append(sanitize_for_filename(postfix))
    return "_".join(p for p in parts if p) + "." + ext.lstrip(".")


def next_free_path(path: Path, *, width: int = 3) -> Path:
    """file.csv → file_001.csv, file_002.csv, … (erster freier Name)."""
    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem}_{counter:0{width}d}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


def write_csv(
    df: Any,
    *,
    prefix: str = "spclone_log",
    postfix: Optional[str] = None,
    timestamp: bool = True,
    encoding: str = "utf-8-sig",
    overwrite: bool = False,
    directory: Optional[PathLike] = None,
) -> Path:
    """
    Schreibt das Log-DataFrame nach `directory` (Default: cwd); `~` wird aufgelöst.
    """
    base_dir = Path.cwd() if directory is None else Path(directory).expanduser()
    target = base_dir / build_csv_name(prefix=prefix, postfix=postfix, timestamp=timestamp)
    if target.exists() and not overwrite:
        target = next_free_path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(target, index=False, encoding=encoding)
    return target


__all__ = ["build_csv_name", "next_free_path", "write_csv"]
