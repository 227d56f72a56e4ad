# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.core.auth — Bearer-Credentials für die SharePoint REST API
===============================================================================
Zweck:
    - Die Migrations-Engine konsumiert ein *fertiges* Bearer-Token; sie erneuert
      es nicht selbst. Dieses Modul liefert die Provider, die der
      SharePointClient dafür nutzt:
        • StaticTokenProvider — umhüllt ein bereits gültiges Token (Engine-Default)
        • TokenProvider       — MSAL Client-Credentials-Flow (nur CLI/Aufrufer)
    - as_token_provider(credential) akzeptiert beides (str oder Provider).

Design-Notizen:
    - Geheimnisse werden in __repr__/Fehlern nicht ausgegeben.
    - SharePoint-REST verlangt ein Token für die Ressource des Tenants:
      Scope "https://<tenant>.sharepoint.com/.default" (resource_scope()).
    - Für Delegated-Flows (interaktive Anmeldung) ist der Aufrufer zuständig.

Abhängigkeiten:
    pip install msal

Beispiel:
    from spclone.core.auth import TokenProvider, resource_scope
    tp = TokenProvider.from_json("config.json",
                                 scopes=resource_scope("https://contoso.sharepoint.com/sites/A"))
    token = tp.get_access_token()

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union, Dict, Any
import json
import os
import threading

import msal

from .util import split_site_url

__version__ = "1.0.0"


def resource_scope(site_url: str) -> str:
    """'https://contoso.sharepoint.com/sites/A' → 'https://contoso.sharepoint.com/.default'."""
    host, _ = split_site_url(site_url)
    return f"https://{host}/.default"


def _ensure_scopes(scopes: Optional[Union[str, Iterable[str]]]) -> List[str]:
    """Normalisiert 'scopes' zu einer Liste (trim, leere Einträge verwerfen)."""
    if scopes is None:
        return []
    if isinstance(scopes, str):
        scopes = [scopes]
    return [s.strip() for s in scopes if str(s).strip()]


class StaticTokenProvider:
    """Hält ein fertiges Bearer-Token; keine Erneuerung (401 wird geloggt, nicht repariert)."""

    def __init__(self, token: str) -> None:
        token = (token or "").strip()
        if token.lower().startswith("bearer "):
            token = token[7:].strip()
        if not token:
            raise ValueError("A non-empty bearer token is required.")
        self._token = token

    def get_access_token(self, *args: Any, **kwargs: Any) -> str:
        return self._token

    def __repr__(self) -> str:
        return "StaticTokenProvider(token='***')"


def as_token_provider(credential: Any) -> Any:
    """str → StaticTokenProvider; Objekte mit get_access_token() unverändert."""
    if isinstance(credential, str):
        return StaticTokenProvider(credential)
    if callable(getattr(credential, "get_access_token", None)):
        return credential
    raise TypeError("credential must be a bearer token string or expose get_access_token()")


@dataclass
class TokenProvider:
    """
    Dünner Wrapper um MSAL ConfidentialClientApplication (Client-Credentials).

    Cache-Hinweise
    --------------
    - Optional persistenter Cache via 'cache_path' (SerializableTokenCache).
    - _cca wird einmalig erzeugt und mit einem Lock geschützt.

    Hinweis SharePoint
    ------------------
    - Für Client-Credentials gegen SharePoint-REST verlangt der Tenant in der
      Regel ein Zertifikat; client_credential darf daher auch ein dict
      ({"private_key": ..., "thumbprint": ...}) sein (MSAL-Format).
    """

    __version__ = __version__

    tenant_id: str
    client_id: str
    client_credential: Union[str, Dict[str, Any]]
    scopes: List[str] = field(default_factory=list)
    authority_base: str = "https://login.microsoftonline.com"
    cache_path: Optional[Union[str, Path]] = None

    _cache: Optional[msal.SerializableTokenCache] = field(default=None, init=False, repr=False)
    _cca: Optional[msal.ConfidentialClientApplication] = field(default=None, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    # ------------------------------- Fabriken ---------------------------------

    @classmethod
    def from_json(cls, config_path: Union[str, Path], section: str = "azuread",
                  *, scopes: Optional[Union[str, Iterable[str]]] = None) -> "TokenProvider":
        """
        Lädt azuread-Credentials aus JSON:

        {
          "azuread": {
             "tenant_id": "...",
             "client_id": "...",
             "client_secret": "...",
             "cache_path": "optional/path/to/cache.bin"
          }
        }
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        cfg = json.loads(path.read_text(encoding="utf-8"))
        if section not in cfg:
            raise KeyError(f"Section '{section}' not found in {path}")
        return cls.from_dict(cfg[section], scopes=scopes)

    @classmethod
    def from_dict(cls, d: Dict[str, Any], *, scopes: Optional[Union[str, Iterable[str]]] = None) -> "TokenProvider":
        credential = d.get("client_certificate") or d.get("client_secret")
        if not credential:
            raise KeyError("client_secret or client_certificate required")
        return cls(
            tenant_id=str(d["tenant_id"]).strip(),
            client_id=str(d["client_id"]).strip(),
            client_credential=credential,
            scopes=_ensure_scopes(scopes if scopes is not None else d.get("scopes")),
            cache_path=Path(d["cache_path"]) if d.get("cache_path") else None,
        )

    @classmethod
    def from_env(cls, prefix: str = "SPCLONE_", *, scopes: Optional[Union[str, Iterable[str]]] = None,
                 cache_path: Optional[Union[str, Path]] = None) -> "TokenProvider":
        """
        Erwartete Variablen:
        - SPCLONE_TENANT_ID
        - SPCLONE_CLIENT_ID
        - SPCLONE_CLIENT_SECRET
        """
        tid = os.getenv(f"{prefix}TENANT_ID", "").strip()
        cid = os.getenv(f"{prefix}CLIENT_ID", "").strip()
        sec = os.getenv(f"{prefix}CLIENT_SECRET", "")
        if not (tid and cid and sec):
            raise ValueError(f"Environment variables {prefix}TENANT_ID/_CLIENT_ID/_CLIENT_SECRET required.")
        return cls(
            tenant_id=tid,
            client_id=cid,
            client_credential=sec,
            scopes=_ensure_scopes(scopes),
            cache_path=Path(cache_path) if cache_path else None,
        )

    # --------------------------------- Utils ----------------------------------

    @property
    def authority(self) -> str:
        """Komplette Authority-URL inkl. Tenant-ID."""
        return f"{self.authority_base.rstrip('/')}/{self.tenant_id}"

    def _ensure_app(self) -> None:
        """Initialisiert Cache und ConfidentialClientApplication (einmalig)."""
        if self._cca is not None:
            return

        cache = None
        if self.cache_path:
            cache = msal.SerializableTokenCache()
            p = Path(self.cache_path)
            if p.exists():
                try:
                    cache.deserialize(p.read_text())
                except ValueError:
                    # Cache nicht lesbar => neu beginnen
                    cache = msal.SerializableTokenCache()
        self._cache = cache

        self._cca = msal.ConfidentialClientApplication(
            client_id=self.client_id,
            authority=self.authority,
            client_credential=self.client_credential,
            token_cache=self._cache,
        )

    def _persist_cache_if_needed(self) -> None:
        """Schreibt den Cache zurück, falls geändert und cache_path gesetzt."""
        if self._cache is None or not self.cache_path:
            return
        if self._cache.has_state_changed:
            p = Path(self.cache_path)
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(self._cache.serialize())

    # ------------------------------ Hauptmethode ------------------------------

    def get_access_token(self, scopes: Optional[Union[str, Iterable[str]]] = None) -> str:
        """
        Holt ein Access Token (Client Credentials Flow).

        Parameter:
            scopes: Liste oder String (Default: self.scopes)

        Raises:
            ValueError ohne Scopes, RuntimeError bei Fehlern der Token-Ausstellung
        """
        wanted = _ensure_scopes(scopes) or list(self.scopes)
        if not wanted:
            raise ValueError("No scopes configured (use resource_scope(site_url)).")
        with self._lock:
            self._ensure_app()
            result = self._cca.acquire_token_for_client(scopes=wanted)
            self._persist_cache_if_needed()
        if "access_token" not in result:
            # Nur sichere Felder durchreichen
            err = {
                "error": result.get("error"),
                "error_description": result.get("error_description"),
                "correlation_id": result.get("correlation_id"),
            }
            raise RuntimeError(f"Token acquisition failed: {err}")
        return str(result["access_token"])

    # --------------------------------- Repr -----------------------------------

    def __repr__(self) -> str:
        sid = (self.client_id[:6] + "…") if self.client_id else "?"
        return f"TokenProvider(tenant_id='{self.tenant_id}', client_id='{sid}', cache_path={self.cache_path})"


__all__ = ["TokenProvider", "StaticTokenProvider", "as_token_provider", "resource_scope", "__version__"]
