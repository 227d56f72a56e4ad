# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.domains.sharepoint.lists.views — Ansichten einer Liste
===============================================================================
Funktionen:
    get_views(sc, *, site_url, list_title, with_fields=True)   -> [ViewDescriptor]
    get_view_fields(sc, *, site_url, list_title, view_id)      -> [str]
    get_view_formatter(sc, *, site_url, list_title, view_id)   -> str | None
    create_view(sc, *, site_url, list_title, view, default_row_limit=30) -> view_id
    clear_view_fields(sc, *, site_url, list_title, view_id)
    add_view_field(sc, *, site_url, list_title, view_id, field_name)
    set_view_fields(sc, *, site_url, list_title, view_id, field_names)
        -> [(name, ok, error_text)]
    patch_view_formatter(sc, *, site_url, list_title, view_id, formatter)

REST:
    GET  .../views
    GET  .../views('<id>')/ViewFields                 (d.Items.results)
    GET  .../views('<id>')?$select=CustomFormatter
    POST .../views                                    (SP.View)
    POST .../views('<id>')/ViewFields/RemoveAllViewFields
    POST .../views('<id>')/ViewFields/AddViewField('<name>')
    POST .../views('<id>')                            (X-HTTP-Method: MERGE)

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from spclone.core.http import SharePointClient, SharePointError
from spclone.core.util import list_api_url, odata_literal, results_of, strip_guid_braces
from spclone.domains.sharepoint.models import ViewDescriptor

__all__ = [
    "get_views",
    "get_view_fields",
    "get_view_formatter",
    "create_view",
    "clear_view_fields",
    "add_view_field",
    "set_view_fields",
    "patch_view_formatter",
]


def _view_url(site_url: str, list_title: str, view_id: str, path: str = "") -> str:
    seg = f"views('{strip_guid_braces(view_id)}')"
    return list_api_url(site_url, list_title, f"{seg}/{path}" if path else seg)


def get_view_fields(sc: SharePointClient, *, site_url: str, list_title: str, view_id: str) -> List[str]:
    d = sc.get_json(_view_url(site_url, list_title, view_id, "ViewFields"))
    return [str(x) for x in results_of((d or {}).get("Items"))]


def get_views(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    with_fields: bool = True,
) -> List[ViewDescriptor]:
    """
    Liest alle (nicht versteckten) Ansichten. Mit with_fields=True wird die
    Feldreihenfolge je Ansicht über einen eigenen Roundtrip ergänzt.
    """
    views = [ViewDescriptor.from_rest(d) for d in sc.get_results(list_api_url(site_url, list_title, "views"))]
    views = [v for v in views if not v.hidden]
    if with_fields:
        for v in views:
            if v.id and not v.field_refs:
                v.field_refs = get_view_fields(sc, site_url=site_url, list_title=list_title, view_id=v.id)
    return views


def get_view_formatter(sc: SharePointClient, *, site_url: str, list_title: str, view_id: str) -> Optional[str]:
    d = sc.get_json(_view_url(site_url, list_title, view_id), params={"$select": "CustomFormatter"})
    return (d or {}).get("CustomFormatter") or None


def create_view(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    view: ViewDescriptor,
    default_row_limit: int = 30,
) -> str:
    """Legt die View-Hülle an (Titel, Query, RowLimit, Paging, DefaultView) und liefert die neue Id."""
    payload = {
        "__metadata": {"type": "SP.View"},
        "Title": view.title,
        "PersonalView": False,
        "ViewQuery": view.query or "",
        "RowLimit": int(view.row_limit or default_row_limit),
        "Paged": view.paged is not False,
        "DefaultView": bool(view.default_view),
    }
    d = sc.post_json(list_api_url(site_url, list_title, "views"), json=payload, expected=(200, 201))
    view_id = strip_guid_braces((d or {}).get("Id"))
    if not view_id:
        raise SharePointError("View created but no Id returned", text=str(d)[:500])
    return view_id


def clear_view_fields(sc: SharePointClient, *, site_url: str, list_title: str, view_id: str) -> None:
    sc.post_json(_view_url(site_url, list_title, view_id, "ViewFields/RemoveAllViewFields"))


def add_view_field(sc: SharePointClient, *, site_url: str, list_title: str, view_id: str, field_name: str) -> None:
    path = f"ViewFields/AddViewField('{odata_literal(field_name)}')"
    sc.post_json(_view_url(site_url, list_title, view_id, path))


def set_view_fields(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    view_id: str,
    field_names: Sequence[str],
) -> List[Tuple[str, bool, str]]:
    """
    Ersetzt die Feldliste: erst leeren, dann Feld für Feld in Reihenfolge
    hinzufügen. Einzelfehler brechen nicht ab; Rückgabe je Feld (name, ok, error).
    """
    clear_view_fields(sc, site_url=site_url, list_title=list_title, view_id=view_id)
    out: List[Tuple[str, bool, str]] = []
    for name in field_names:
        try:
            add_view_field(sc, site_url=site_url, list_title=list_title, view_id=view_id, field_name=name)
        except SharePointError as ex:
            out.append((name, False, ex.text or str(ex)))
        else:
            out.append((name, True, ""))
    return out


def patch_view_formatter(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    view_id: str,
    formatter: str,
) -> None:
    payload = {"__metadata": {"type": "SP.View"}, "CustomFormatter": formatter}
    sc.merge(_view_url(site_url, list_title, view_id), json=payload)
