# util.py
# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.core.util — Helfer: Site-URLs, OData-Literale, SP-Name-Encoding
===============================================================================
Zweck:
    - Site-URL Normalisierung und Aufbau von REST-URLs (/_api/web/...)
    - OData-String-Literale (' → '')
    - GUID-Klammern entfernen
    - UTF-8-Konsolenerkennung
    - SharePoint-InternalName Decoding (_x0020_ → " " usw.)
    - Normalisierung von Feldnamen für den Namensabgleich
    - Dateinamen-Sanitizer
    - Masking sensibler Felder (Secrets)
    - Verbose-OData Collections ({"results": [...]}) auspacken

Abhängigkeiten:
    * Standardbibliothek

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence, Tuple
from urllib.parse import quote, urlsplit
import locale
import re
import sys
import unicodedata

# ------------------------------ UTF-8 / Console -------------------------------

def supports_utf8_stdout() -> bool:
    enc = (getattr(sys.stdout, "encoding", None) or locale.getpreferredencoding(False) or "").lower()
    return "utf" in enc


ELLIPSIS = "…" if supports_utf8_stdout() else "..."


# ------------------------------ GUID / Masking --------------------------------

def strip_guid_braces(value: Any) -> Any:
    """Entfernt führende/abschließende { } in GUID-Strings."""
    if isinstance(value, str) and len(value) >= 2 and value[0] == "{" and value[-1] == "}":
        return value[1:-1]
    return value


def mask_secrets(d: Mapping[str, Any], *, mask_keys: Sequence[str] = ("client_secret", "password", "secret", "token")) -> Dict[str, Any]:
    """
    Gibt eine Kopie von 'd' zurück, in der Werte unterhalb bestimmter Keys maskiert sind.
    - Fall-insensitiver Key-Vergleich (enthält-Logik).
    """
    out: Dict[str, Any] = {}
    for k, v in d.items():
        k_lc = str(k).lower()
        if any(m in k_lc for m in mask_keys):
            out[k] = "***"
        else:
            out[k] = v
    return out


# ------------------------------ Site-URLs / OData -----------------------------

def split_site_url(site_url: str) -> Tuple[str, str]:
    """
    Wandelt eine vollqualifizierte SharePoint-URL in (hostname, server_relative_path) um.
    Beispiel:
      https://contoso.sharepoint.com/sites/TeamA/  -> ("contoso.sharepoint.com", "/sites/TeamA")
    """
    s = (site_url or "").strip()
    if not s.startswith(("http://", "https://")):
        raise ValueError(f"Invalid site URL: {site_url!r} (absolute http(s) URL expected)")
    parts = urlsplit(s)
    if not parts.netloc:
        raise ValueError(f"Invalid site URL: {site_url!r} (no host)")
    path = (parts.path or "").rstrip("/")
    return parts.netloc, path


def normalize_site_url(site_url: str) -> str:
    """'https://Host/sites/A/' → 'https://host/sites/A' (Host klein, ohne Slash am Ende)."""
    host, path = split_site_url(site_url)
    scheme = urlsplit(site_url.strip()).scheme
    return f"{scheme}://{host.lower()}{path}"


def web_api_url(site_url: str, path: str = "") -> str:
    """Absolute REST-URL unterhalb von <site>/_api/web."""
    base = normalize_site_url(site_url) + "/_api/web"
    path = (path or "").lstrip("/")
    return f"{base}/{path}" if path else base


def odata_literal(value: str) -> str:
    """OData-String-Literal: einfache Hochkommas verdoppeln, dann URL-quoten."""
    return quote(str(value).replace("'", "''"), safe="")


def list_api_url(site_url: str, list_title: str, path: str = "") -> str:
    """REST-URL einer Liste per Titel: .../_api/web/lists/GetByTitle('<title>')[/path]."""
    base = web_api_url(site_url, f"lists/GetByTitle('{odata_literal(list_title)}')")
    path = (path or "").lstrip("/")
    return f"{base}/{path}" if path else base


# ------------------------------ SharePoint Encoding ---------------------------

_ENCODED_TOKEN_RE = re.compile(r"_x([0-9A-Fa-f]{4})_")


def sp_decode_internal_name(name: str) -> str:
    """Decodiert _xNNNN_-Sequenzen ('Start_x0020_Date' → 'Start Date')."""
    def _decode_hex(match: re.Match) -> str:
        try:
            return chr(int(match.group(1), 16))
        except ValueError:
            return match.group(0)
    return _ENCODED_TOKEN_RE.sub(_decode_hex, name or "")


def strip_encoding_tokens(name: str) -> str:
    """Entfernt _xNNNN_-Sequenzen ersatzlos ('Start_x0020_Date' → 'StartDate')."""
    return _ENCODED_TOKEN_RE.sub("", name or "")


def has_encoding_token(name: str) -> bool:
    return bool(_ENCODED_TOKEN_RE.search(name or ""))


def normalize_field_name(name: str) -> str:
    """
    Normalisiert SP-Feldnamen für Vergleiche: decodiert _xNNNN_-Sequenzen,
    NFKC, entfernt Whitespace, casefold.
        'Start_x0020_Date' / 'Start Date' / 'startdate' → 'startdate'
    """
    if not isinstance(name, str):
        return ""
    s = unicodedata.normalize("NFKC", sp_decode_internal_name(name))
    return re.sub(r"\s+", "", s).casefold()


# ------------------------------ Dateinamen / Pfade ----------------------------

_SAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9\-_.]")

def sanitize_for_filename(value: str) -> str:
    """Entfernt kritische Zeichen und normiert Mehrfach-Unterstriche."""
    val = (value or "").strip().replace(" ", "_")
    val = _SAFE_CHARS_RE.sub("_", val)
    val = re.sub(r"_+", "_", val).strip("_")
    return val or "NA"


# ------------------------------ Payload ---------------------------------------

def results_of(value: Any) -> List[Any]:
    """
    Verbose-OData liefert Collections als {'results': [...]}; manche Felder
    (z. B. Choices) kommen je nach Version auch als nackte Liste.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, dict) and isinstance(value.get("results"), list):
        return value["results"]
    return []


__all__ = [
    "supports_utf8_stdout",
    "ELLIPSIS",
    "strip_guid_braces",
    "mask_secrets",
    "split_site_url",
    "normalize_site_url",
    "web_api_url",
    "odata_literal",
    "list_api_url",
    "sp_decode_internal_name",
    "strip_encoding_tokens",
    "has_encoding_token",
    "normalize_field_name",
    "sanitize_for_filename",
    "results_of",
]
