# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.migration.identity — Personen-Referenzen → Ziel-User-Id
===============================================================================
Zweck:
    User-Ids sind site-lokal. Für jede Personen-Referenz eines Quell-Eintrags
    wird ein login-äquivalenter Schlüssel bestimmt und auf dem Ziel per
    ensureuser in eine Ziel-Id übersetzt.

Pipeline (erster nicht-leerer Schlüssel gewinnt, billig vor teuer):
    login    Name / LoginName aus dem expandierten Objekt
    email    EMail / Email
    title    Anzeigename
    remote   getuserbyid(<Id>) auf der Quell-Site (ein Roundtrip)

Der Schlüssel wird anschließend mit ensure_user auf der Ziel-Site aufgelöst.
Ergebnisse (Schlüssel → Ziel-Id) werden pro Lauf gecacht.

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from spclone.core.http import SharePointError
from spclone.core.logbuffer import as_log
from spclone.domains.sharepoint.models import IdentityRef

__all__ = ["IdentityResolver", "identity_from_value"]


def identity_from_value(value: Any) -> Optional[IdentityRef]:
    """Expandiertes Personen-Objekt (dict) → IdentityRef; sonst None."""
    if not isinstance(value, Mapping):
        return None
    if "__deferred" in value:
        return None
    ref = IdentityRef.from_rest(dict(value))
    if ref.id is None and not (ref.login_name or ref.email or ref.title):
        return None
    return ref


class IdentityResolver:
    """
    Explizite Resolver-Pipeline; jede Stufe: (name, fn(IdentityRef) -> key|None).
    """

    def __init__(self, client, log=None, *, source_site: str, target_site: str) -> None:
        self.client = client
        self.log = as_log(log)
        self.source_site = source_site
        self.target_site = target_site
        self._cache: Dict[str, int] = {}
        self.pipeline: List[Tuple[str, Callable[[IdentityRef], Optional[str]]]] = [
            ("login", lambda r: r.login_name),
            ("email", lambda r: r.email),
            ("title", lambda r: r.title),
            ("remote", self._remote_lookup),
        ]

    def login_key(self, ref: IdentityRef) -> Tuple[Optional[str], Optional[str]]:
        """(Schlüssel, Stufe) oder (None, None), wenn keine Stufe etwas liefert."""
        for stage, fn in self.pipeline:
            key = fn(ref)
            if key:
                return key, stage
        return None, None

    def resolve(self, ref: IdentityRef) -> Optional[int]:
        """Ziel-User-Id oder None (geloggt), wenn nicht auflösbar."""
        key, stage = self.login_key(ref)
        if not key:
            self.log.warning("Identity has no login-equivalent key", source_id=ref.id)
            return None
        if key in self._cache:
            return self._cache[key]
        try:
            target_id = self.client.ensure_user(self.target_site, key)
        except SharePointError as ex:
            self.log.warning("Failed to ensure user on target", user=key, stage=stage, error=ex.text or str(ex))
            return None
        self._cache[key] = target_id
        self.log.debug("Resolved identity", user=key, stage=stage, target_id=target_id)
        return target_id

    def resolve_value(self, value: Any) -> Optional[int]:
        ref = identity_from_value(value)
        if ref is None:
            return None
        return self.resolve(ref)

    # ------------------------------ intern ------------------------------------

    def _remote_lookup(self, ref: IdentityRef) -> Optional[str]:
        if ref.id is None:
            return None
        try:
            user = self.client.get_user_by_id(self.source_site, ref.id)
        except SharePointError as ex:
            self.log.warning("Failed to look up source user", source_id=ref.id, error=ex.text or str(ex))
            return None
        return user.login_name or user.email or user.title
