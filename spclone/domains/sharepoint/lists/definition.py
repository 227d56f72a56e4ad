# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.domains.sharepoint.lists.definition — Liste lesen/anlegen/löschen
===============================================================================
Funktionen:
    get_list(sc, *, site_url, list_title)          -> ListDescriptor  (NotFound)
    get_list_by_id(sc, *, site_url, list_id)       -> ListDescriptor  (NotFound)
    delete_list(sc, *, site_url, list_title)       -> bool (False = existierte nicht)
    create_list(sc, *, site_url, descriptor)       -> ListDescriptor

REST:
    GET    /_api/web/lists/GetByTitle('<title>')
    GET    /_api/web/lists(guid'<id>')
    DELETE /_api/web/lists/GetByTitle('<title>')   (IF-MATCH: *)
    POST   /_api/web/lists                         {__metadata: SP.List, Title, BaseTemplate}

Hinweise:
    - HTTP ausschließlich über SharePointClient (strukturierte Fehler).
    - Jede Funktion ist genau ein Roundtrip.

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from spclone.core.http import NotFound, SharePointClient
from spclone.core.util import list_api_url, strip_guid_braces, web_api_url
from spclone.domains.sharepoint.models import ListDescriptor

__all__ = ["get_list", "get_list_by_id", "delete_list", "create_list"]

_LIST_SELECT = "Id,Title,BaseTemplate,BaseType,Hidden,ItemCount,ListItemEntityTypeFullName"


def get_list(sc: SharePointClient, *, site_url: str, list_title: str) -> ListDescriptor:
    d = sc.get_json(list_api_url(site_url, list_title), params={"$select": _LIST_SELECT})
    return ListDescriptor.from_rest(d)


def get_list_by_id(sc: SharePointClient, *, site_url: str, list_id: str) -> ListDescriptor:
    url = web_api_url(site_url, f"lists(guid'{strip_guid_braces(list_id)}')")
    d = sc.get_json(url, params={"$select": _LIST_SELECT})
    return ListDescriptor.from_rest(d)


def delete_list(sc: SharePointClient, *, site_url: str, list_title: str) -> bool:
    """Löscht die Liste; False, wenn sie nicht existiert (404)."""
    try:
        sc.request(
            "DELETE",
            list_api_url(site_url, list_title),
            headers={"IF-MATCH": "*"},
            expected=(200, 204),
        )
    except NotFound:
        return False
    return True


def create_list(sc: SharePointClient, *, site_url: str, descriptor: ListDescriptor) -> ListDescriptor:
    if descriptor.base_template is None:
        raise ValueError(f"List '{descriptor.title}' has no base template")
    payload = {
        "__metadata": {"type": "SP.List"},
        "Title": descriptor.title,
        "BaseTemplate": int(descriptor.base_template),
    }
    d = sc.post_json(web_api_url(site_url, "lists"), json=payload, expected=(200, 201))
    created = ListDescriptor.from_rest(d)
    if not created.title:
        created.title = descriptor.title
    if created.base_template is None:
        created.base_template = descriptor.base_template
    return created
