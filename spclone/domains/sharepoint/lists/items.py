# spclone/domains/sharepoint/lists/items.py
# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.domains.sharepoint.lists.items — List Items lesen/anlegen
===============================================================================
Funktionen:
    get_items(sc, *, site_url, list_title, select=None, expand=None, page_size=None)
        -> [ItemRecord]
    get_item(sc, *, site_url, list_title, item_id, select=None, expand=None)
        -> ItemRecord
    create_item(sc, *, site_url, list_title, entity_type, values)
        -> ItemRecord

Merkmale:
    - $select/$expand über OData-Builder; Identitätsfelder werden als
      Feld/Unterfeld selektiert und expandiert (AssignedTo/EMail …).
    - Paging über d.__next (SharePointClient.get_results).
    - __metadata.type beim Anlegen = ListItemEntityTypeFullName der Zielliste
      (Fallback 'SP.ListItem', wenn unbekannt).

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from spclone.core.http import SharePointClient
from spclone.core.odata import OData
from spclone.core.util import list_api_url
from spclone.domains.sharepoint.models import ItemRecord

__all__ = ["build_item_query", "get_items", "get_item", "create_item"]


def build_item_query(
    select: Optional[Sequence[str]] = None,
    expand: Optional[Sequence[str]] = None,
    page_size: Optional[int] = None,
) -> Dict[str, str]:
    q = OData()
    if select:
        q.select(*select)
    if expand:
        q.expand(*expand)
    if page_size:
        q.top(page_size)
    return q.to_params()


def get_items(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    select: Optional[Sequence[str]] = None,
    expand: Optional[Sequence[str]] = None,
    page_size: Optional[int] = None,
) -> List[ItemRecord]:
    params = build_item_query(select, expand, page_size)
    url = list_api_url(site_url, list_title, "items")
    return [ItemRecord.from_rest(d) for d in sc.get_results(url, params=params)]


def get_item(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    item_id: int,
    select: Optional[Sequence[str]] = None,
    expand: Optional[Sequence[str]] = None,
) -> ItemRecord:
    params = build_item_query(select, expand)
    d = sc.get_json(list_api_url(site_url, list_title, f"items({int(item_id)})"), params=params)
    return ItemRecord.from_rest(d)


def create_item(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    entity_type: Optional[str],
    values: Mapping[str, Any],
) -> ItemRecord:
    payload: Dict[str, Any] = {"__metadata": {"type": entity_type or "SP.ListItem"}}
    payload.update(values)
    d = sc.post_json(list_api_url(site_url, list_title, "items"), json=payload, expected=(200, 201))
    return ItemRecord.from_rest(d or {})
