"""
spclone.domains.sharepoint.sites.lists
======================================

Listet alle Listen einer SharePoint-Site über die REST API auf und ordnet sie
einer Art zu (`List` bzw. `Document Library`).

Funktion(en)
------------
- `list_df(sc, site_url, *, include_hidden=False, top=None)`:
  Liefert `(df, info)` mit den Spalten
  `['id', 'title', 'baseTemplate', 'kind', 'itemCount', 'hidden']`.

Versionierung
-------------
- 1.0.0 (2026-10-19)
  * Erstveröffentlichung: Quelle für die Auswahl "alle Listen migrieren".
  * Paginierung via `d.__next`, deterministische Spaltenreihenfolge, OData `$select`.

Hinweise
--------
- **HTTP** ausschließlich über `SharePointClient`.
- Rückgabe stets `(df, info)`:
  * `df`: `pandas.DataFrame` mit deterministischer Spaltenreihenfolge.
  * `info`: `dict` mit `url`, `params`, `warnings`, `count`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from spclone.core.http import SharePointClient
from spclone.core.odata import OData
from spclone.core.util import web_api_url
from spclone.domains.sharepoint.models import ListDescriptor

__all__ = ["list_df", "KIND_LIST", "KIND_LIBRARY", "__version__"]
__version__ = "1.0.0"

KIND_LIST = "List"
KIND_LIBRARY = "Document Library"

_COLUMNS = ["id", "title", "baseTemplate", "kind", "itemCount", "hidden"]


def list_df(
    sc: SharePointClient,
    site_url: str,
    *,
    include_hidden: bool = False,
    top: Optional[int] = None,
) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Liste alle Listen einer Site.

    Parameters
    ----------
    sc : SharePointClient
        Authentifizierter REST-Client.
    site_url : str
        Vollständige Web-URL: ``https://<tenant>.sharepoint.com/sites/<pfad>``
    include_hidden : bool, optional (keyword-only)
        Auch versteckte Systemlisten zurückgeben (Default: False).
    top : int, optional (keyword-only)
        Clientseitiges Limit der maximal zurückzugebenden Einträge.

    Returns
    -------
    (df, info) : Tuple[pandas.DataFrame, dict]
        df
            DataFrame mit Spalten: ``['id', 'title', 'baseTemplate', 'kind', 'itemCount', 'hidden']``.
            ``kind`` ist ``'List'`` oder ``'Document Library'``.
        info
            ``url``, ``params``, ``warnings``, ``count``, ``module_version``.

    Examples
    --------
    >>> df, info = list_df(sc, "https://contoso.sharepoint.com/sites/HR")
    >>> df[df["kind"] == "List"]["title"].tolist()
    ['Tasks', 'Issues']
    """
    warnings: List[str] = []

    url = web_api_url(site_url, "lists")
    params = OData().select("Id", "Title", "BaseTemplate", "BaseType", "Hidden", "ItemCount").to_params()

    rows: List[Dict[str, Any]] = []
    for d in sc.get_results(url, params=params):
        desc = ListDescriptor.from_rest(d)
        if desc.hidden and not include_hidden:
            continue
        if desc.base_template is None:
            warnings.append(f"list without BaseTemplate: {desc.title!r}")
        rows.append({
            "id": desc.id,
            "title": desc.title,
            "baseTemplate": desc.base_template,
            "kind": KIND_LIBRARY if desc.is_document_library else KIND_LIST,
            "itemCount": desc.item_count,
            "hidden": desc.hidden,
        })
        if top is not None and len(rows) >= top:
            break

    df = pd.DataFrame.from_records(rows, columns=_COLUMNS)
    info: Dict[str, Any] = {
        "url": url,
        "params": params,
        "warnings": warnings,
        "count": int(len(df)),
        "module_version": __version__,
    }
    return df, info
