# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.domains.sharepoint.lists.fields — Felder einer Liste lesen/anlegen
===============================================================================
Funktionen:
    get_fields(sc, *, site_url, list_title)                      -> [FieldDescriptor]
    create_field(sc, *, site_url, list_title, payload)           -> FieldDescriptor
    create_field_as_xml(sc, *, site_url, list_title, schema_xml) -> FieldDescriptor
    get_field_formatter(sc, *, site_url, list_title, field_name) -> str | None
    patch_field_formatter(sc, *, site_url, list_title, field_name, formatter, field_type)

REST:
    GET  .../fields
    POST .../fields                     (SP.Field / SP.FieldUser / SP.FieldDateTime / …)
    POST .../fields/CreateFieldAsXml    (SP.XmlSchemaFieldCreationInformation)
    GET  .../fields/GetByInternalNameOrTitle('<name>')?$select=CustomFormatter
    POST .../fields/GetByInternalNameOrTitle('<name>')   (X-HTTP-Method: MERGE)

Hinweise:
    - CustomFormatter ist in der Standard-Feldabfrage nicht enthalten und muss
      explizit selektiert werden.
    - Rückgabe von create_* ist das *angelegte* Feld; dessen InternalName kann
      vom Quell-InternalName abweichen (z. B. 'Start_x0020_Date').

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from spclone.core.http import SharePointClient
from spclone.core.util import list_api_url, odata_literal
from spclone.domains.sharepoint.models import FieldDescriptor

__all__ = [
    "XML_FIELD_OPTIONS",
    "get_fields",
    "create_field",
    "create_field_as_xml",
    "get_field_formatter",
    "patch_field_formatter",
]

# SP.AddFieldOptions.addFieldInternalNameHint: Name-Attribut als InternalName verwenden
XML_FIELD_OPTIONS = 8


def _field_url(site_url: str, list_title: str, field_name: str) -> str:
    return list_api_url(site_url, list_title, f"fields/GetByInternalNameOrTitle('{odata_literal(field_name)}')")


def get_fields(sc: SharePointClient, *, site_url: str, list_title: str) -> List[FieldDescriptor]:
    return [FieldDescriptor.from_rest(d) for d in sc.get_results(list_api_url(site_url, list_title, "fields"))]


def create_field(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    payload: Dict[str, Any],
) -> FieldDescriptor:
    d = sc.post_json(list_api_url(site_url, list_title, "fields"), json=payload, expected=(200, 201))
    return FieldDescriptor.from_rest(d)


def create_field_as_xml(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    schema_xml: str,
    options: int = XML_FIELD_OPTIONS,
) -> FieldDescriptor:
    payload = {
        "parameters": {
            "__metadata": {"type": "SP.XmlSchemaFieldCreationInformation"},
            "SchemaXml": schema_xml,
            "Options": int(options),
        }
    }
    d = sc.post_json(list_api_url(site_url, list_title, "fields/CreateFieldAsXml"), json=payload, expected=(200, 201))
    return FieldDescriptor.from_rest(d)


def get_field_formatter(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    field_name: str,
) -> Optional[str]:
    d = sc.get_json(_field_url(site_url, list_title, field_name), params={"$select": "CustomFormatter"})
    return (d or {}).get("CustomFormatter") or None


def patch_field_formatter(
    sc: SharePointClient,
    *,
    site_url: str,
    list_title: str,
    field_name: str,
    formatter: str,
    field_type: str = "SP.Field",
) -> None:
    payload = {"__metadata": {"type": field_type}, "CustomFormatter": formatter}
    sc.merge(_field_url(site_url, list_title, field_name), json=payload)
