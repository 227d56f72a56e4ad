# odata.py
# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.core.odata — Kompakter OData-Query-Builder für SharePoint REST
===============================================================================
Zweck:
    - Hilft beim sauberen Zusammensetzen von $select, $expand und $top.
    - Gibt am Ende ein dict (params) zurück, das direkt an SharePointClient
      übergeben werden kann.
    - SharePoint-REST kennt (anders als Graph) keine verschachtelten
      Expand-Optionen; Unterfelder werden über $select=Feld/Unterfeld gewählt.

Beispiel:
    q = (OData()
            .select("Id", "Title", "AssignedTo/Id", "AssignedTo/EMail")
            .expand("AssignedTo")
            .top(500))
    params = q.to_params()
    # -> {"$select": "Id,Title,AssignedTo/Id,AssignedTo/EMail",
    #     "$expand": "AssignedTo", "$top": "500"}

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Dict


def _as_csv(values: Iterable[str]) -> str:
    out: List[str] = []
    for v in values:
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return ",".join(out)


class OData:
    """Fluent Builder für OData-Query-Parameter (Duplikate werden entfernt)."""

    def __init__(self) -> None:
        self._select: List[str] = []
        self._expand: List[str] = []
        self._top: Optional[int] = None

    # ------------------------------- Fluent API -------------------------------

    def select(self, *fields: str) -> "OData":
        self._select.extend([f for f in fields if f and str(f).strip()])
        return self

    def expand(self, *entities: str) -> "OData":
        self._expand.extend([e for e in entities if e and str(e).strip()])
        return self

    def top(self, n: int) -> "OData":
        self._top = int(n)
        return self

    # -------------------------------- Output ----------------------------------

    def to_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self._select:
            params["$select"] = _as_csv(self._select)
        if self._expand:
            params["$expand"] = _as_csv(self._expand)
        if self._top is not None:
            params["$top"] = str(self._top)
        return params

    def __repr__(self) -> str:
        return f"OData({self.to_params()})"


__all__ = ["OData"]
