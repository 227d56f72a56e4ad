# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.domains.sharepoint.sites.users — Identitäten einer Site
===============================================================================
Funktionen:
    ensure_user(sc, *, site_url, logon_name)  -> int  (site-lokale User-Id)
    get_user_by_id(sc, *, site_url, user_id)  -> IdentityRef

REST:
    POST /_api/web/ensureuser           {"logonName": "<login|email|name>"}
    GET  /_api/web/getuserbyid(<id>)

Hinweise:
    - ensureuser legt den Benutzer in der Site-Benutzerliste an, falls nötig,
      und liefert dessen Id. Diese Id ist *site-lokal*: dieselbe Person hat
      auf Quelle und Ziel in der Regel unterschiedliche Ids.

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from spclone.core.http import SharePointClient, SharePointError
from spclone.core.util import web_api_url
from spclone.domains.sharepoint.models import IdentityRef

__all__ = ["ensure_user", "get_user_by_id"]


def ensure_user(sc: SharePointClient, *, site_url: str, logon_name: str) -> int:
    d = sc.post_json(web_api_url(site_url, "ensureuser"), json={"logonName": logon_name}, expected=(200, 201))
    user = IdentityRef.from_rest(d or {})
    if user.id is None:
        raise SharePointError("ensureuser returned no Id", text=f"logonName={logon_name}")
    return user.id


def get_user_by_id(sc: SharePointClient, *, site_url: str, user_id: int) -> IdentityRef:
    d = sc.get_json(web_api_url(site_url, f"getuserbyid({int(user_id)})"))
    return IdentityRef.from_rest(d or {})
