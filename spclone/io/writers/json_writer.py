# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.io.writers.json_writer — Migrations-Log als JSON (records)
===============================================================================
Zweck:
    - Exportiert das Log-DataFrame als JSON-Array von Einträgen
      [{ts, level, message, …}, …].
    - Gleiches Namensschema wie der CSV-Writer:
        <prefix>[_<YYYYMMDD>_<hhmmss>][_<postfix>].json

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from spclone.io.writers.csv_writer import PathLike, build_csv_name, next_free_path


def write_json(
    df: Any,
    *,
    prefix: str = "spclone_log",
    postfix: Optional[str] = None,
    timestamp: bool = True,
    encoding: str = "utf-8",
    indent: Optional[int] = 2,
    overwrite: bool = False,
    directory: Optional[PathLike] = None,
) -> Path:
    base_dir = Path.cwd() if directory is None else Path(directory).expanduser()
    target = base_dir / build_csv_name(prefix=prefix, postfix=postfix, timestamp=timestamp, ext="json")
    if target.exists() and not overwrite:
        target = next_free_path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    # force_ascii=False: Umlaute in Listentiteln bleiben lesbar
    text = df.to_json(orient="records", force_ascii=False, indent=indent)
    target.write_text(text, encoding=encoding)
    return target


__all__ = ["write_json"]
