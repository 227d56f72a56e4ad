# http.py
# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.core.http — HTTP-Client für die SharePoint REST API (_api/web)
===============================================================================
Zweck:
    - Einheitlicher Zugriff auf SharePoint-REST-Endpoints mit:
        * Bearer-Auth via TokenProvider (oder statischem Token)
        * Verbose-OData (Accept/Content-Type: application/json;odata=verbose)
        * Strukturierten Fehlern (SharePointError: Status + Response-Text)
        * Optionalem Backoff (429/5xx), Retry-After-Respekt — Default: aus
        * Auto-Paging über d.__next

    - Methoden:
        * request()      – generisch (GET/POST/DELETE/MERGE…)
        * get_json()     – GET + JSON (d-Hülle entfernt)
        * post_json()    – POST + JSON (d-Hülle entfernt)
        * get_results()  – Generator über d.results über d.__next hinweg

Fehlerverhalten:
    - Jeder nicht erwartete Statuscode → SharePointError(status, text, …)
    - 404 → NotFound (Unterklasse)
    - Netzwerkfehler (requests.RequestException) → SharePointError(status=None)
    - Keine automatischen Wiederholungen, solange max_retries=0 (Default).

Abhängigkeiten:
    pip install requests

Beispiel:
    from spclone.core.auth import StaticTokenProvider
    from spclone.core.http import SharePointClient

    sc = SharePointClient(StaticTokenProvider("eyJ0..."))
    web = sc.get_json("https://contoso.sharepoint.com/sites/A/_api/web")

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

import time
import random
from typing import Any, Dict, Generator, Iterable, Mapping, Optional

import requests


_VERBOSE_JSON = "application/json;odata=verbose"
_RETRY_STATUS = (429, 500, 502, 503, 504)


class SharePointError(RuntimeError):
    """
    Fehlgeschlagener REST-Aufruf.

    status ist None, wenn keine Antwort vorliegt (Netzwerk/Timeout).
    text enthält den (gekürzten) Response-Body für das Log.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        text: str = "",
        method: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.text = text
        self.method = method
        self.url = url

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is not None:
            base = f"{base} (HTTP {self.status})"
        return f"{base}: {self.text}" if self.text else base


class NotFound(SharePointError):
    """HTTP 404 — Liste/Feld/View/Item existiert nicht."""


def _unwrap(payload: Any) -> Any:
    """Entfernt die verbose-OData-Hülle {'d': ...}."""
    if isinstance(payload, dict) and "d" in payload:
        return payload["d"]
    return payload


class SharePointClient:
    """
    Schlanker SharePoint-REST-Client mit strukturierten Fehlern und Paging.

    Hinweis:
        - 'url' ist immer absolut (https://<host>/<site>/_api/...); die Site
          wechselt pro Aufruf (Quelle/Ziel), daher kein fixer Basispfad.
        - Session wird wiederverwendet (Keep-Alive).
        - token_provider muss get_access_token() anbieten.
    """

    def __init__(
        self,
        token_provider,
        *,
        timeout: int = 60,
        max_retries: int = 0,
        backoff_factor: float = 0.5,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
        log: Optional[Any] = None,  # kompatibel zu MigrationLog, aber optional
    ) -> None:
        self.token_provider = token_provider
        self.timeout = int(timeout)
        self.max_retries = int(max_retries)
        self.backoff_factor = float(backoff_factor)
        self.user_agent = user_agent or "spclone/1.0"
        self.session = session or requests.Session()
        self.log = log

    # ------------------------------- Kernaufruf --------------------------------

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        json: Optional[Any] = None,
        expected: Iterable[int] = (200, 201, 204),
        timeout: Optional[int] = None,
        retry: Optional[int] = None,
    ) -> requests.Response:
        """
        Führt einen HTTP-Request aus.

        - expected: erlaubte Statuscodes (default: 200/201/204)
        - retry: Anzahl Wiederholungen bei 429/5xx (default: self.max_retries)

        Raises:
            NotFound bei 404, sonst SharePointError
        """
        try:
            token = self.token_provider.get_access_token()
        except (RuntimeError, ValueError) as ex:
            self._emit("error", "Token acquisition failed", url=url, method=method)
            raise SharePointError(
                f"{method.upper()} {url} failed",
                text=f"{type(ex).__name__}: {ex}",
                method=method.upper(),
                url=url,
            ) from ex

        hdrs = {
            "Authorization": f"Bearer {token}",
            "Accept": _VERBOSE_JSON,
            "User-Agent": self.user_agent,
        }
        if json is not None:
            hdrs["Content-Type"] = _VERBOSE_JSON
        if headers:
            hdrs.update(headers)

        expected = tuple(expected)
        retries_left = self.max_retries if retry is None else int(retry)
        attempt = 0

        while True:
            attempt += 1
            try:
                resp = self.session.request(
                    method=method.upper(),
                    url=url,
                    params=dict(params) if params else None,
                    headers=hdrs,
                    json=json,
                    timeout=timeout or self.timeout,
                )
            except requests.RequestException as ex:
                if attempt <= retries_left:
                    self._sleep_backoff(attempt, None)
                    continue
                self._emit("error", "HTTP request failed (no response)", url=url, method=method, attempt=attempt)
                raise SharePointError(
                    f"{method.upper()} {url} failed",
                    text=f"{type(ex).__name__}: {ex}",
                    method=method.upper(),
                    url=url,
                ) from ex

            if resp.status_code in expected:
                return resp

            # Retry-Kandidat? (429 oder 5xx); nur wenn explizit konfiguriert
            if resp.status_code in _RETRY_STATUS and attempt <= retries_left:
                retry_after = self._parse_retry_after(resp)
                self._emit(
                    "warning",
                    "HTTP retry",
                    url=url,
                    method=method,
                    status=resp.status_code,
                    attempt=attempt,
                    retry_after=retry_after,
                )
                self._sleep_backoff(attempt, retry_after)
                continue

            text = self._safe_text(resp)
            self._emit("debug", "HTTP error", url=url, method=method, status=resp.status_code)
            cls = NotFound if resp.status_code == 404 else SharePointError
            raise cls(
                f"{method.upper()} {url} failed",
                status=resp.status_code,
                text=text,
                method=method.upper(),
                url=url,
            )

    # ------------------------------- Hilfen ------------------------------------

    def get_json(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> Dict[str, Any]:
        """GET + JSON-Decoding; liefert den Inhalt von 'd'."""
        resp = self.request("GET", url, params=params, headers=headers, expected=(200,), timeout=timeout)
        return _unwrap(self._json(resp))

    def post_json(
        self,
        url: str,
        *,
        json: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
        expected: Iterable[int] = (200, 201, 204),
        timeout: Optional[int] = None,
    ) -> Dict[str, Any]:
        """POST + JSON-Decoding; leere Antworten (204) → {}."""
        resp = self.request("POST", url, json=json, headers=headers, expected=expected, timeout=timeout)
        if resp.status_code == 204 or not (resp.content or b"").strip():
            return {}
        return _unwrap(self._json(resp))

    def merge(self, url: str, *, json: Any, timeout: Optional[int] = None) -> None:
        """Teil-Update (POST + X-HTTP-Method: MERGE, IF-MATCH: *)."""
        self.request(
            "POST",
            url,
            json=json,
            headers={"X-HTTP-Method": "MERGE", "IF-MATCH": "*"},
            expected=(200, 204),
            timeout=timeout,
        )

    def get_results(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        timeout: Optional[int] = None,
    ) -> Generator[Dict[str, Any], None, None]:
        """
        Generator über d.results über d.__next hinweg.

        Beispiel:
            for f in sc.get_results(list_api_url(site, "Tasks", "fields")):
                ...
        """
        params = dict(params or {})
        while url:
            d = self.get_json(url, params=params, timeout=timeout)
            for it in d.get("results", []) if isinstance(d, dict) else []:
                yield it
            # nächste Runde: absolute URL inkl. Query, keine params mehr anhängen
            url = d.get("__next") if isinstance(d, dict) else None
            params = {}

    # ------------------------------ interne Utils -----------------------------

    def _emit(self, level: str, message: str, **context: Any) -> None:
        if self.log is None:
            return
        self.log.log(level, message, **context)

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as ex:
            raise SharePointError(
                "Response is not valid JSON",
                status=resp.status_code,
                text=SharePointClient._safe_text(resp),
                url=getattr(resp, "url", None),
            ) from ex

    def _parse_retry_after(self, resp: requests.Response) -> Optional[float]:
        """Parst Retry-After (sek.) aus Header; fallback: None."""
        ra = resp.headers.get("Retry-After")
        if not ra:
            return None
        try:
            return float(ra)
        except ValueError:
            return None

    def _sleep_backoff(self, attempt: int, retry_after: Optional[float]) -> None:
        """Wartet unter Berücksichtigung von Retry-After und Exponential Backoff."""
        if retry_after is not None:
            time.sleep(max(0.0, retry_after))
            return
        # Exponentielles Backoff + jitter
        delay = self.backoff_factor * (2 ** (attempt - 1))
        delay += random.uniform(0.0, 0.25)  # jitter
        time.sleep(delay)

    @staticmethod
    def _safe_text(resp: requests.Response, limit: int = 500) -> str:
        """Kürzt Response-Text für Logs."""
        t = getattr(resp, "text", "") or ""
        return t if len(t) <= limit else t[:limit] + " …"


__all__ = ["SharePointClient", "SharePointError", "NotFound"]
