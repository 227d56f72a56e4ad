# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.migration.translator — Quell-Felder → Anlage-Requests auf dem Ziel
===============================================================================
Zweck:
    - Filtert Felder, die nie kopiert werden (versteckt, schreibgeschützt,
      eingebaute Felder jeder Liste).
    - Übersetzt einen FieldDescriptor je nach TypeAsString in den passenden
      Anlage-Request:
        * Choice / MultiChoice → Schema-XML über CreateFieldAsXml
        * User / UserMulti     → SP.FieldUser (SelectionMode=1)
        * DateTime             → SP.FieldDateTime (Datum, gregorianisch)
        * Lookup / LookupMulti → SP.FieldLookup mit der Ziel-Listen-Id
        * alles andere         → SP.Field (Title, FieldTypeKind, Required)
    - Überträgt CustomFormatter (Spaltenformatierung) nach der Anlage.
    - Ein fehlerhaftes Feld wird geloggt; das nächste Feld läuft weiter.

Rückgabe:
    FieldTranslationResult.created: {Quell-InternalName: Ziel-InternalName}

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from xml.sax.saxutils import escape, quoteattr

from spclone.core.http import NotFound, SharePointError
from spclone.core.logbuffer import as_log
from spclone.domains.sharepoint.models import FieldDescriptor

__all__ = [
    "BUILTIN_FIELDS",
    "FieldTranslationError",
    "LookupTargetMissing",
    "FieldRequest",
    "FieldTranslationResult",
    "FieldTranslator",
    "should_copy_field",
    "build_choice_schema_xml",
    "build_field_request",
]

# Existieren implizit auf jeder Liste
BUILTIN_FIELDS = frozenset(
    {"ContentType", "Attachments", "Title", "ID", "Created", "Modified", "Author", "Editor"}
)

_CHOICE_TYPES = ("Choice", "MultiChoice")
_LOOKUP_TYPES = ("Lookup", "LookupMulti")


class FieldTranslationError(RuntimeError):
    """Ein Feld konnte nicht übersetzt/angelegt werden (Einzelfehler, nicht fatal)."""


class LookupTargetMissing(FieldTranslationError):
    """Die Liste, auf die ein Lookup-Feld verweist, existiert auf dem Ziel (noch) nicht."""


@dataclass
class FieldRequest:
    """Anlage-Request: entweder Schema-XML (CreateFieldAsXml) oder REST-Payload."""
    schema_xml: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    @property
    def is_xml(self) -> bool:
        return self.schema_xml is not None

    @property
    def metadata_type(self) -> str:
        if self.payload:
            return self.payload.get("__metadata", {}).get("type", "SP.Field")
        return "SP.Field"


@dataclass
class FieldTranslationResult:
    created: Dict[str, str] = field(default_factory=dict)
    created_fields: List[FieldDescriptor] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


# ------------------------------ reine Funktionen ------------------------------

def should_copy_field(f: FieldDescriptor) -> bool:
    return not (f.hidden or f.read_only or f.internal_name in BUILTIN_FIELDS)


def build_choice_schema_xml(f: FieldDescriptor) -> str:
    """
    Schema-XML für Choice/MultiChoice; Werte und Attribute werden escaped.

    >>> build_choice_schema_xml(FieldDescriptor("Status", "Status", "Choice", choices=["A & B"]))
    '<Field Type="Choice" Name="Status" StaticName="Status" DisplayName="Status" Required="FALSE" Format="Dropdown"><CHOICES><CHOICE>A &amp; B</CHOICE></CHOICES></Field>'
    """
    attrs = [
        f"Type={quoteattr(f.type_name)}",
        f"Name={quoteattr(f.internal_name)}",
        f"StaticName={quoteattr(f.internal_name)}",
        f"DisplayName={quoteattr(f.title)}",
        f"Required={quoteattr('TRUE' if f.required else 'FALSE')}",
    ]
    if f.type_name == "Choice":
        attrs.append('Format="Dropdown"')
    parts = [f"<Field {' '.join(attrs)}>"]
    if f.default_value:
        parts.append(f"<Default>{escape(f.default_value)}</Default>")
    parts.append("<CHOICES>")
    parts.extend(f"<CHOICE>{escape(str(c))}</CHOICE>" for c in f.choices)
    parts.append("</CHOICES></Field>")
    return "".join(parts)


def build_field_request(f: FieldDescriptor, *, lookup_list_id: Optional[str] = None) -> FieldRequest:
    """
    Baut den Anlage-Request für ein Quell-Feld (Reihenfolge der Typ-Regeln fix).

    Lookup-Felder brauchen die Id der Ziel-Liste (lookup_list_id); ohne diese
    wird LookupTargetMissing geworfen.
    """
    if f.type_name in _CHOICE_TYPES:
        return FieldRequest(schema_xml=build_choice_schema_xml(f))

    payload: Dict[str, Any] = {
        "__metadata": {"type": "SP.Field"},
        "Title": f.title,
        "FieldTypeKind": f.type_kind,
        "Required": bool(f.required),
    }
    if f.type_name in ("User", "UserMulti"):
        payload["__metadata"] = {"type": "SP.FieldUser"}
        payload["SelectionMode"] = 1
        if f.type_name == "UserMulti":
            payload["AllowMultipleValues"] = True
    elif f.type_name == "DateTime":
        payload["__metadata"] = {"type": "SP.FieldDateTime"}
        payload["DisplayFormat"] = 0
        payload["DateTimeCalendarType"] = 0
        payload["FriendlyDisplayFormat"] = 0
    elif f.type_name in _LOOKUP_TYPES:
        if not lookup_list_id:
            raise LookupTargetMissing(f"Lookup target list for field '{f.title}' is unknown on the target site")
        payload["__metadata"] = {"type": "SP.FieldLookup"}
        payload["LookupList"] = lookup_list_id
        payload["LookupField"] = f.lookup_field or "Title"
        if f.type_name == "LookupMulti":
            payload["AllowMultipleValues"] = True

    if f.default_value:
        payload["DefaultValue"] = f.default_value
    return FieldRequest(payload=payload)


# ------------------------------ Translator ------------------------------------

class FieldTranslator:
    """
    Legt die kopierbaren Felder einer Quell-Liste auf der Ziel-Liste an.

    client: ListSchemaClient (oder kompatibel)
    log:    MigrationLog oder Callable[[str], Any]
    """

    def __init__(self, client, log=None, *, source_site: str, target_site: str, list_title: str) -> None:
        self.client = client
        self.log = as_log(log)
        self.source_site = source_site
        self.target_site = target_site
        self.list_title = list_title
        self._lookup_cache: Dict[str, str] = {}

    def translate_all(self, source_fields: Sequence[FieldDescriptor]) -> FieldTranslationResult:
        result = FieldTranslationResult()
        for f in source_fields:
            if not should_copy_field(f):
                result.skipped.append(f.internal_name)
                continue
            try:
                created = self.translate(f)
            except SharePointError as ex:
                result.failed.append(f.title)
                self.log.error("Failed to create field", field=f.title, status=ex.status, error=ex.text or str(ex))
                continue
            except FieldTranslationError as ex:
                result.failed.append(f.title)
                self.log.error("Failed to create field", field=f.title, error=str(ex))
                continue
            result.created[f.internal_name] = created.internal_name
            result.created_fields.append(created)
            self.log.info("Created field", field=f.title, internal_name=created.internal_name, type=f.type_name)
        return result

    def translate(self, f: FieldDescriptor) -> FieldDescriptor:
        """Ein Feld anlegen (+ Formatierung übertragen). Fehler werden geworfen."""
        lookup_list_id = self._lookup_target_id(f) if f.type_name in _LOOKUP_TYPES else None
        request = build_field_request(f, lookup_list_id=lookup_list_id)

        if request.is_xml:
            created = self.client.create_field_as_xml(self.target_site, self.list_title, request.schema_xml)
        else:
            created = self.client.create_field(self.target_site, self.list_title, request.payload)

        # leere Antwort: Name aus dem Request übernehmen
        if not created.internal_name:
            created.internal_name = f.internal_name
        if not created.title:
            created.title = f.title

        self._copy_formatter(f, created, request.metadata_type)
        return created

    # ------------------------------ intern ------------------------------------

    def _lookup_target_id(self, f: FieldDescriptor) -> str:
        """Quell-LookupList-Id → Quell-Titel → Ziel-Liste gleichen Titels → Ziel-Id."""
        source_id = f.lookup_list_id
        if not source_id:
            raise LookupTargetMissing(f"Lookup field '{f.title}' has no lookup list")
        if source_id in self._lookup_cache:
            return self._lookup_cache[source_id]
        try:
            source_list = self.client.get_list_by_id(self.source_site, source_id)
        except NotFound as ex:
            raise LookupTargetMissing(
                f"Lookup list {source_id} of field '{f.title}' not found on source site"
            ) from ex
        try:
            target_list = self.client.get_list(self.target_site, source_list.title)
        except NotFound as ex:
            raise LookupTargetMissing(
                f"Lookup target list '{source_list.title}' of field '{f.title}' does not exist on target site; "
                f"migrate '{source_list.title}' first"
            ) from ex
        if not target_list.id:
            raise LookupTargetMissing(f"Lookup target list '{source_list.title}' returned no Id")
        self._lookup_cache[source_id] = target_list.id
        return target_list.id

    def _copy_formatter(self, source: FieldDescriptor, created: FieldDescriptor, field_type: str) -> None:
        try:
            formatter = self.client.get_field_formatter(self.source_site, self.list_title, source.internal_name)
        except SharePointError as ex:
            self.log.warning("Failed to read field formatting", field=source.title, error=ex.text or str(ex))
            return
        if not formatter:
            return
        try:
            self.client.patch_custom_formatting(
                self.target_site,
                self.list_title,
                "field",
                created.internal_name,
                formatter,
                field_type=field_type,
            )
        except SharePointError as ex:
            self.log.warning("Failed to apply field formatting", field=source.title, error=ex.text or str(ex))
            return
        self.log.info("Applied field formatting", field=source.title)
