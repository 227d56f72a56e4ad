# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.migration.reconciler — Feldreferenzen aus Ansichten → Ziel-InternalName
===============================================================================
Zweck:
    Ansichten referenzieren Felder in der Namensform, die die Quell-API gerade
    serialisiert hat ('Start Date', 'StartDate', 'Start_x0020_Date', …). Auf
    dem Ziel zählt nur der InternalName. Der Reconciler löst jede Referenz über
    eine geordnete Strategie-Tabelle auf (erster Treffer gewinnt):

        exact       InternalName exakt vorhanden
        alias       feste Alias-Tabelle (FIELD_ALIASES), nur wenn das Ziel existiert
        renamed     Umbenennung, die der Translator beim Anlegen beobachtet hat
        internal    normalisierter InternalName (_xNNNN_ decodiert, ohne
                    Whitespace, casefold); bei Gleichstand gewinnt die
                    encodierte Form
        title       normalisierter Titel
        stripped    Referenz ohne Whitespace vs. InternalName ohne _xNNNN_
        fallback    Referenz unverändert

    Jede Auflösung (auch der Fallback) wird mit ihrer Strategie geloggt.

Lebensdauer:
    FieldNameIndex wird einmal pro Listen-Migration nach dem Anlegen der
    Felder gebaut und danach verworfen.

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple
import re

from spclone.core.logbuffer import as_log
from spclone.core.util import has_encoding_token, normalize_field_name, strip_encoding_tokens
from spclone.domains.sharepoint.models import FieldDescriptor

__all__ = [
    "FIELD_ALIASES",
    "STRATEGIES",
    "FieldNameIndex",
    "Resolution",
    "FieldNameReconciler",
]

# Historisch bekannte Namensformen, die sich aus dem Titel allein nicht ableiten lassen.
# Ziel-Kandidaten in Reihenfolge; genommen wird der erste, der auf dem Ziel existiert.
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "Start Date": ("Start_x0020_Date", "StartDate"),
    "StartDate": ("Start_x0020_Date", "StartDate"),
    "Due Date": ("Due_x0020_Date", "DueDate"),
    "DueDate": ("Due_x0020_Date", "DueDate"),
    "Assigned To": ("AssignedTo", "Assigned_x0020_To"),
    "Assignedto": ("AssignedTo", "Assigned_x0020_To"),
    "% Complete": ("PercentComplete",),
    "Type": ("DocIcon",),
    "Name": ("LinkFilename",),
}

_WS_RE = re.compile(r"\s+")


def _stripped_key(name: str) -> str:
    return _WS_RE.sub("", name or "").casefold()


def _add(index: Dict[str, List[str]], key: str, name: str) -> None:
    if key:
        bucket = index.setdefault(key, [])
        if name not in bucket:
            bucket.append(name)


@dataclass
class FieldNameIndex:
    """Alias → kanonischer InternalName der Ziel-Liste."""
    internal_names: List[str] = field(default_factory=list)
    by_internal: Dict[str, List[str]] = field(default_factory=dict)
    by_title: Dict[str, List[str]] = field(default_factory=dict)
    by_stripped: Dict[str, List[str]] = field(default_factory=dict)
    renamed: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        target_fields: Sequence[FieldDescriptor],
        renamed: Optional[Mapping[str, str]] = None,
    ) -> "FieldNameIndex":
        idx = cls()
        for f in target_fields:
            name = f.internal_name
            if not name or name in idx.internal_names:
                continue
            idx.internal_names.append(name)
            _add(idx.by_internal, normalize_field_name(name), name)
            _add(idx.by_title, normalize_field_name(f.title), name)
            _add(idx.by_stripped, strip_encoding_tokens(name).casefold(), name)
        for src, dst in (renamed or {}).items():
            if src and dst and src != dst:
                idx.renamed[src] = dst
        return idx

    def __contains__(self, name: str) -> bool:
        return name in self.internal_names


def _pick(candidates: Optional[List[str]]) -> Optional[str]:
    """Erster Kandidat; bei mehreren gewinnt ein Name mit _xNNNN_-Token."""
    if not candidates:
        return None
    for name in candidates:
        if has_encoding_token(name):
            return name
    return candidates[0]


# ------------------------------ Strategien ------------------------------------

def _exact(idx: FieldNameIndex, ref: str) -> Optional[str]:
    return ref if ref in idx else None


def _alias(idx: FieldNameIndex, ref: str) -> Optional[str]:
    for candidate in FIELD_ALIASES.get(ref.strip(), ()):
        if candidate in idx:
            return candidate
    return None


def _renamed(idx: FieldNameIndex, ref: str) -> Optional[str]:
    dst = idx.renamed.get(ref)
    if dst is None:
        key = normalize_field_name(ref)
        for src, cand in idx.renamed.items():
            if normalize_field_name(src) == key:
                dst = cand
                break
    return dst if dst is not None and dst in idx else None


def _internal(idx: FieldNameIndex, ref: str) -> Optional[str]:
    return _pick(idx.by_internal.get(normalize_field_name(ref)))


def _title(idx: FieldNameIndex, ref: str) -> Optional[str]:
    return _pick(idx.by_title.get(normalize_field_name(ref)))


def _stripped(idx: FieldNameIndex, ref: str) -> Optional[str]:
    return _pick(idx.by_stripped.get(_stripped_key(ref)))


STRATEGIES: List[Tuple[str, Callable[[FieldNameIndex, str], Optional[str]]]] = [
    ("exact", _exact),
    ("alias", _alias),
    ("renamed", _renamed),
    ("internal", _internal),
    ("title", _title),
    ("stripped", _stripped),
]


@dataclass
class Resolution:
    reference: str
    name: str
    strategy: str

    @property
    def is_fallback(self) -> bool:
        return self.strategy == "fallback"


class FieldNameReconciler:
    """Löst Feldreferenzen gegen einen FieldNameIndex auf und loggt jede Entscheidung."""

    def __init__(self, index: FieldNameIndex, log=None, *, strategies=None) -> None:
        self.index = index
        self.log = as_log(log)
        self.strategies = list(strategies or STRATEGIES)

    def resolve(self, reference: str) -> Resolution:
        for strategy, fn in self.strategies:
            name = fn(self.index, reference)
            if name:
                self.log.info("Resolved field reference", reference=reference, field=name, strategy=strategy)
                return Resolution(reference, name, strategy)
        self.log.warning("Resolved field reference", reference=reference, field=reference, strategy="fallback")
        return Resolution(reference, reference, "fallback")

    def resolve_all(self, references: Sequence[str]) -> List[Resolution]:
        return [self.resolve(r) for r in references]
