# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.migration.items — Einträge kopieren (inkl. Personenfelder)
===============================================================================
Ablauf:
    1) Quell-Einträge auflisten (Id, Title; Paging über __next)
    2) je Eintrag ohne Id: überspringen + loggen
    3) vollständige Werte holen: $select = genau die übersetzten Felder,
       Personenfelder als <F>/Id,<F>/Title,<F>/EMail,<F>/Name + $expand,
       Lookup-Felder als <F>Id
    4) Payload bauen:
         * Personenfelder → <Ziel>Id = Ziel-User-Id  (Multi: {"results": [...]})
           nicht auflösbar → Feld weglassen (Warnung), Eintrag trotzdem anlegen
         * Lookup-Felder  → <Ziel>Id = Quellwert
         * alles andere   → unter (ggf. umbenanntem) Schlüssel; übersprungen
           werden leere Schlüssel, None, __deferred/__metadata-Objekte,
           _/__-Präfixe und Id/ID des Eintrags
    5) anlegen; Fehler mit Response-Text loggen, nächster Eintrag

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from spclone.core.http import SharePointError
from spclone.core.logbuffer import as_log
from spclone.core.util import results_of
from spclone.domains.sharepoint.models import FieldDescriptor, ItemRecord
from spclone.migration.identity import IdentityResolver

__all__ = ["ItemSelection", "ItemMigrationResult", "ItemMigrator", "build_selection"]

_IDENTITY_SUBFIELDS = ("Id", "Title", "EMail", "Name")


@dataclass
class ItemSelection:
    select: List[str] = field(default_factory=list)
    expand: List[str] = field(default_factory=list)


@dataclass
class ItemMigrationResult:
    created: int = 0
    failed: int = 0
    skipped: int = 0
    identities_omitted: int = 0


def build_selection(fields: Sequence[FieldDescriptor]) -> ItemSelection:
    """
    $select/$expand für die übersetzten Quell-Felder.

    >>> s = build_selection([FieldDescriptor("Assigned to", "Assignedto", "User")])
    >>> s.select, s.expand
    (['Id', 'Title', 'Assignedto/Id', 'Assignedto/Title', 'Assignedto/EMail', 'Assignedto/Name'], ['Assignedto'])
    """
    sel = ItemSelection(select=["Id", "Title"])
    for f in fields:
        name = f.internal_name
        if f.is_identity:
            sel.select.extend(f"{name}/{sub}" for sub in _IDENTITY_SUBFIELDS)
            sel.expand.append(name)
        elif f.is_lookup:
            sel.select.append(f"{name}Id")
        elif name not in sel.select:
            sel.select.append(name)
    return sel


def _write_value(value: Any) -> Any:
    """
    Quellwert → schreibbarer Wert; None = weglassen.

    >>> _write_value({"__metadata": {"type": "Collection(Edm.String)"}, "results": ["a", "b"]})
    {'results': ['a', 'b']}
    >>> _write_value({"__deferred": {"uri": "https://x"}}) is None
    True
    """
    if not isinstance(value, Mapping):
        return value
    if "__deferred" in value:
        return None
    if "results" in value:
        return {"results": list(value.get("results") or [])}
    # SP.FieldUrlValue u.ä. brauchen ihren __metadata-Typ beim Schreiben
    return dict(value)


class ItemMigrator:
    """
    client:   ListSchemaClient (oder kompatibel)
    fields:   übersetzte Quell-Felder
    renamed:  {Quell-InternalName: Ziel-InternalName}
    resolver: IdentityResolver für Personenfelder
    """

    def __init__(
        self,
        client,
        resolver: IdentityResolver,
        log=None,
        *,
        source_site: str,
        target_site: str,
        list_title: str,
        fields: Sequence[FieldDescriptor],
        renamed: Optional[Mapping[str, str]] = None,
        entity_type: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> None:
        self.client = client
        self.resolver = resolver
        self.log = as_log(log)
        self.source_site = source_site
        self.target_site = target_site
        self.list_title = list_title
        self.fields = list(fields)
        self.renamed = dict(renamed or {})
        self.entity_type = entity_type
        self.page_size = page_size
        self.selection = build_selection(self.fields)
        self._identity_fields = {f.internal_name: f for f in self.fields if f.is_identity}
        self._lookup_fields = {f.internal_name: f for f in self.fields if f.is_lookup}
        self._plain_fields = {"Title"} | {
            f.internal_name for f in self.fields if not (f.is_identity or f.is_lookup)
        }

    def target_name(self, source_name: str) -> str:
        return self.renamed.get(source_name, source_name)

    # ------------------------------ Ablauf ------------------------------------

    def list_source_items(self) -> List[ItemRecord]:
        return self.client.get_items(
            self.source_site, self.list_title, select=["Id", "Title"], page_size=self.page_size
        )

    def migrate(self, rows: Optional[Sequence[ItemRecord]] = None) -> ItemMigrationResult:
        """Kopiert alle Einträge; rows=None → Quell-Liste wird gelesen (Fehler werfen)."""
        result = ItemMigrationResult()
        if rows is None:
            rows = self.list_source_items()
        for row in rows:
            self.migrate_one(row, result)
        self.log.info(
            "Items migrated",
            list=self.list_title,
            created=result.created,
            failed=result.failed,
            skipped=result.skipped,
        )
        return result

    def migrate_one(self, row: ItemRecord, result: ItemMigrationResult) -> None:
        label = row.title or "Untitled"
        if row.id is None:
            result.skipped += 1
            self.log.warning("Skipping item without Id", item=label)
            return
        try:
            full = self.client.get_item(
                self.source_site,
                self.list_title,
                row.id,
                select=self.selection.select,
                expand=self.selection.expand,
            )
        except SharePointError as ex:
            result.failed += 1
            self.log.warning("Failed to fetch item", item=label, source_id=row.id, error=ex.text or str(ex))
            return

        payload, omitted = self.build_payload(full.values)
        result.identities_omitted += len(omitted)
        for name in omitted:
            self.log.warning("Identity not resolvable, field omitted", item=label, field=name)
        try:
            self.client.create_item(self.target_site, self.list_title, self.entity_type, payload)
        except SharePointError as ex:
            result.failed += 1
            self.log.error("Failed to create item", item=label, source_id=row.id, status=ex.status, error=ex.text or str(ex))
            return
        result.created += 1
        self.log.info("Created item", item=label, source_id=row.id)

    # ------------------------------ Payload -----------------------------------

    def build_payload(self, values: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
        """(payload, ausgelassene Personenfelder)"""
        payload: Dict[str, Any] = {}
        omitted: List[str] = []

        for name, f in self._identity_fields.items():
            value = values.get(name)
            if value is None:
                continue
            key = f"{self.target_name(name)}Id"
            if f.type_name == "UserMulti":
                ids = [i for i in (self.resolver.resolve_value(v) for v in results_of(value)) if i is not None]
                if ids:
                    payload[key] = {"results": ids}
                elif results_of(value):
                    omitted.append(name)
            else:
                target_id = self.resolver.resolve_value(value)
                if target_id is None:
                    omitted.append(name)
                else:
                    payload[key] = target_id

        for name in self._lookup_fields:
            value = _write_value(values.get(f"{name}Id"))
            if value is None:
                continue
            payload[f"{self.target_name(name)}Id"] = value

        # nur Title + übersetzte Spalten; Systemspalten und Ids bleiben draußen
        for key, raw in values.items():
            if key not in self._plain_fields:
                continue
            value = _write_value(raw)
            if value is None:
                continue
            payload[self.target_name(key)] = value
        return payload, omitted
