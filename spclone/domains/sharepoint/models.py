# -*- coding: utf-8 -*-
"""
spclone.domains.sharepoint.models
=================================

Transiente Beschreibungsobjekte für Listen, Felder, Ansichten, Einträge und
Identitäten. Jedes Objekt wird aus einer verbose-OData-Antwort (Inhalt von
`d`) gebaut (`from_rest`) und nach der Migration einer Liste verworfen.

Hinweise
--------
- `internal_name` ist der kanonische, pro Liste eindeutige Feldschlüssel;
  `title` ist das, was Benutzer und Ansichten oft referenzieren.
- Identitätsfelder (`User`/`UserMulti`) tragen in Einträgen verschachtelte
  Objekte ({Id, Title, EMail, Name}) statt Skalare.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from spclone.core.util import results_of, strip_guid_braces

__all__ = [
    "IDENTITY_TYPES",
    "ListDescriptor",
    "FieldDescriptor",
    "ViewDescriptor",
    "IdentityRef",
    "ItemRecord",
]

IDENTITY_TYPES = ("User", "UserMulti")


def _as_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class ListDescriptor:
    title: str
    base_template: Optional[int] = None
    id: Optional[str] = None
    item_entity_type: Optional[str] = None
    hidden: bool = False
    item_count: int = 0
    base_type: Optional[int] = None

    @classmethod
    def from_rest(cls, d: Dict[str, Any]) -> "ListDescriptor":
        return cls(
            title=d.get("Title") or "",
            base_template=_as_int(d.get("BaseTemplate")),
            id=strip_guid_braces(d.get("Id")) or None,
            item_entity_type=d.get("ListItemEntityTypeFullName") or None,
            hidden=bool(d.get("Hidden")),
            item_count=_as_int(d.get("ItemCount"), 0) or 0,
            base_type=_as_int(d.get("BaseType")),
        )

    @property
    def is_document_library(self) -> bool:
        return self.base_type == 1 or self.base_template == 101


@dataclass
class FieldDescriptor:
    title: str
    internal_name: str
    type_name: str
    type_kind: Optional[int] = None
    required: bool = False
    hidden: bool = False
    read_only: bool = False
    choices: List[str] = field(default_factory=list)
    lookup_list_id: Optional[str] = None
    lookup_field: Optional[str] = None
    default_value: Optional[str] = None
    allow_multiple: bool = False
    id: Optional[str] = None

    @classmethod
    def from_rest(cls, d: Dict[str, Any]) -> "FieldDescriptor":
        type_name = d.get("TypeAsString") or ""
        return cls(
            title=d.get("Title") or "",
            internal_name=d.get("InternalName") or d.get("StaticName") or "",
            type_name=type_name,
            type_kind=_as_int(d.get("FieldTypeKind")),
            required=bool(d.get("Required")),
            hidden=bool(d.get("Hidden")),
            read_only=bool(d.get("ReadOnlyField")),
            choices=[str(c) for c in results_of(d.get("Choices"))],
            lookup_list_id=strip_guid_braces(d.get("LookupList")) or None,
            lookup_field=d.get("LookupField") or None,
            default_value=d.get("DefaultValue") or None,
            allow_multiple=bool(d.get("AllowMultipleValues")) or type_name in ("UserMulti", "LookupMulti"),
            id=strip_guid_braces(d.get("Id")) or None,
        )

    @property
    def is_identity(self) -> bool:
        return self.type_name in IDENTITY_TYPES

    @property
    def is_lookup(self) -> bool:
        return self.type_name in ("Lookup", "LookupMulti")


@dataclass
class ViewDescriptor:
    title: str
    query: str = ""
    row_limit: Optional[int] = None
    paged: Optional[bool] = None
    default_view: bool = False
    field_refs: List[str] = field(default_factory=list)
    custom_formatter: Optional[str] = None
    id: Optional[str] = None
    hidden: bool = False

    @classmethod
    def from_rest(cls, d: Dict[str, Any]) -> "ViewDescriptor":
        # ViewFields kommen nur bei $expand=ViewFields mit; sonst separat laden
        view_fields = d.get("ViewFields")
        refs = results_of(view_fields.get("Items")) if isinstance(view_fields, dict) else results_of(view_fields)
        return cls(
            title=d.get("Title") or "",
            query=d.get("ViewQuery") or "",
            row_limit=_as_int(d.get("RowLimit")),
            paged=d.get("Paged") if isinstance(d.get("Paged"), bool) else None,
            default_view=bool(d.get("DefaultView")),
            field_refs=[str(r) for r in refs],
            custom_formatter=d.get("CustomFormatter") or None,
            id=strip_guid_braces(d.get("Id")) or None,
            hidden=bool(d.get("Hidden")),
        )


@dataclass
class IdentityRef:
    id: Optional[int] = None
    title: Optional[str] = None
    email: Optional[str] = None
    login_name: Optional[str] = None

    @classmethod
    def from_rest(cls, d: Dict[str, Any]) -> "IdentityRef":
        return cls(
            id=_as_int(d.get("Id")),
            title=d.get("Title") or None,
            email=d.get("EMail") or d.get("Email") or None,
            login_name=d.get("LoginName") or d.get("Name") or None,
        )


@dataclass
class ItemRecord:
    id: Optional[int]
    title: Optional[str] = None
    values: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rest(cls, d: Dict[str, Any]) -> "ItemRecord":
        item_id = _as_int(d.get("Id"), None)
        if item_id is None:
            item_id = _as_int(d.get("ID"), None)
        return cls(id=item_id, title=d.get("Title"), values=dict(d))
