# resolve.py
# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.params.resolve — Job-Resolution: Quellen → valide Migrationsjobs
===============================================================================
Zweck:
    - Vereinheitlicht die Auflösung von Parametern aus mehreren Quellen:
        Priorität: CLI > Job-Eintrag > JSON-Defaults > CONFIG-Block
    - Validiert/konvertiert anhand eines ParamSchema (siehe schema.py)
    - Liefert eine Liste "bereinigter" Jobs + Diagnosen (info)

Struktur Parameter-JSON (Beispiel):
{
  "defaults": { "SOURCE_URL": "https://contoso.sharepoint.com/sites/A",
                "TARGET_URL": "https://contoso.sharepoint.com/sites/B" },
  "jobs": [
    { "LIST_TITLE": "Tasks" },
    { "LIST_TITLE": "Issues", "CopyItems": false }
  ]
}

Ohne Parameter-JSON entsteht je LIST_TITLE (CLI: --list mehrfach) ein Job.

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
import json

from .schema import ParamSchema, default_migration_job_schema


# ------------------------------ Dateilader JSON -------------------------------

def load_param_json(param_json_path: Union[str, Path]) -> Dict[str, Any]:
    p = Path(param_json_path)
    if not p.exists():
        raise FileNotFoundError(f"Parameter JSON not found: {param_json_path}")
    try:
        obj = json.loads(p.read_text(encoding="utf-8"))
    except ValueError as ex:
        raise RuntimeError(f"Failed to parse parameter JSON '{param_json_path}': {ex}") from ex
    if not isinstance(obj, dict) or not isinstance(obj.get("jobs"), list):
        raise ValueError("Parameter JSON must contain a 'jobs' array.")
    if "defaults" in obj and not isinstance(obj["defaults"], dict):
        raise ValueError("'defaults' must be an object if present.")
    return obj


# ------------------------------ Hilfsfunktionen -------------------------------

def _merge_priority(*sources: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merged mehrere dicts; spätere Quellen überschreiben frühere, None-Werte nie.
    Beispiel: _merge_priority(CONFIG, JSON-defaults, JOB, CLI)
    """
    out: Dict[str, Any] = {}
    for src in sources:
        if not src:
            continue
        out.update({k: v for k, v in src.items() if v is not None})
    return out


@dataclass
class ResolveInfo:
    """Diagnose-Objekt zur Auflösung."""
    json_path: Optional[str] = None
    jobs_count: int = 0
    errors: List[str] = field(default_factory=list)


# ------------------------------ Hauptfunktion --------------------------------

def resolve_jobs(
    *,
    cli: Optional[Dict[str, Any]] = None,
    list_titles: Optional[Sequence[str]] = None,
    config_block: Optional[Dict[str, Any]] = None,
    param_json_path: Optional[Union[str, Path]] = None,
    schema: Optional[ParamSchema] = None,
) -> Tuple[List[Dict[str, Any]], ResolveInfo]:
    """
    Ermittelt die effektive Job-Liste.

    Parameter:
        cli: dict mit CLI-Werten (SOURCE_URL, TARGET_URL, …; None = nicht gesetzt)
        list_titles: Listen aus der CLI (--list mehrfach); erzeugt je Titel einen Job
        config_block: Defaults aus der config.json (darf None sein)
        param_json_path: Parameter-JSON mit 'defaults' + 'jobs'
        schema: ParamSchema (Default: default_migration_job_schema())

    Rückgabe:
        (jobs_clean, info) — fehlerhafte Jobs landen nur in info.errors
    """
    schema = schema or default_migration_job_schema()
    info = ResolveInfo()
    cfg = dict(config_block or {})
    cli = dict(cli or {})

    raw_jobs: List[Dict[str, Any]] = []
    json_defaults: Dict[str, Any] = {}
    if param_json_path:
        obj = load_param_json(param_json_path)
        info.json_path = str(param_json_path)
        json_defaults = obj.get("defaults", {})
        raw_jobs.extend(obj["jobs"])
    for title in list_titles or []:
        raw_jobs.append({"LIST_TITLE": title})
    if not raw_jobs:
        raw_jobs.append({})

    jobs_clean: List[Dict[str, Any]] = []
    for job in raw_jobs:
        if not isinstance(job, dict):
            info.errors.append(f"job: {job!r} -> not an object")
            continue
        merged = _merge_priority(cfg, json_defaults, job, cli)
        clean, errs = schema.coerce_and_validate(merged)
        if errs:
            info.errors.extend([f"job: {job} -> " + e for e in errs])
        else:
            jobs_clean.append(clean)

    info.jobs_count = len(jobs_clean)
    return jobs_clean, info


__all__ = ["resolve_jobs", "load_param_json", "ResolveInfo"]
