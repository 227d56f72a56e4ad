# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.migration.orchestrator — Listen-Migration Quelle → Ziel
===============================================================================
Zustände je Liste (kein Rücksprung bei Fehlern):

    start → deleted-if-existed → created → fields-created → fields-visible
          → views-created → items-migrated → done

Fatal für *diese* Liste (ListMigrationError):
    - Quelle und Ziel sind dieselbe Liste
    - Listendetails der Quelle nicht lesbar / BaseTemplate fehlt
    - Dokumentbibliothek (nicht unterstützt)
    - Feldliste der Quelle nicht lesbar
    - Ziel-Liste nicht löschbar / nicht anlegbar

Alles andere (ein Feld, eine Ansicht, ein View-Feld, eine Formatierung, ein
Eintrag, eine Identität) wird geloggt; die Stufe läuft weiter. Die Listen
der Ansichten/Einträge nicht lesen zu können, überspringt nur die Stufe.

Zwischen Feldanlage und Ansichten wird die Feldliste des Ziels gepollt, bis
alle angelegten Felder sichtbar sind oder propagation_timeout abläuft
(Timeout = Warnung, Migration läuft weiter).

Beispiel:
    report = migrate_list(
        "https://contoso.sharepoint.com/sites/A",
        "https://contoso.sharepoint.com/sites/B",
        "Tasks",
        token,
        print,
    )

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import math
import time

import requests

from spclone.core.config.settings import MigrationSettings
from spclone.core.http import SharePointError
from spclone.core.logbuffer import as_log
from spclone.core.util import normalize_site_url
from spclone.domains.sharepoint.models import FieldDescriptor, ListDescriptor
from spclone.domains.sharepoint.schema_client import ListSchemaClient
from spclone.migration.identity import IdentityResolver
from spclone.migration.items import ItemMigrator
from spclone.migration.reconciler import FieldNameIndex, FieldNameReconciler
from spclone.migration.translator import FieldTranslator
from spclone.migration.views import ViewReconstructor

__all__ = [
    "STATES",
    "ListMigrationError",
    "ListMigrationReport",
    "ListMigrator",
    "migrate_list",
    "migrate_lists",
]

STATES = (
    "start",
    "deleted-if-existed",
    "created",
    "fields-created",
    "fields-visible",
    "views-created",
    "items-migrated",
    "done",
)


@dataclass
class ListMigrationReport:
    list_title: str
    source_site: str
    target_site: str
    state: str = "start"
    deleted_existing: bool = False
    fields_created: int = 0
    fields_failed: int = 0
    fields_skipped: int = 0
    fields_visible: bool = False
    views_created: int = 0
    views_failed: int = 0
    items_created: int = 0
    items_failed: int = 0
    items_skipped: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.state == "done"

    def as_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["succeeded"] = self.succeeded
        return d


class ListMigrationError(RuntimeError):
    """Fataler Fehler für genau eine Liste; report zeigt den erreichten Zustand."""

    def __init__(self, message: str, report: Optional[ListMigrationReport] = None) -> None:
        super().__init__(message)
        self.report = report


class ListMigrator:
    """
    Sequenziert Translator, Reconciler, Reconstructor und Item-Migrator für
    eine Liste. sleep/clock sind für Tests injizierbar.
    """

    def __init__(
        self,
        client,
        log=None,
        *,
        settings: Optional[MigrationSettings] = None,
        sleep: Callable[[float], Any] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.log = as_log(log)
        self.settings = settings or MigrationSettings()
        self.sleep = sleep
        self.clock = clock

    # ------------------------------ Hauptablauf -------------------------------

    def run(self, source_site: str, target_site: str, list_title: str) -> ListMigrationReport:
        report = ListMigrationReport(list_title=list_title, source_site=source_site, target_site=target_site)
        self.log.info("Starting list migration", list=list_title, source=source_site, target=target_site)
        try:
            self._run(report)
        except ListMigrationError as ex:
            report.error = str(ex)
            ex.report = report
            self.log.error("List migration failed", list=list_title, state=report.state, error=report.error)
            raise
        return report

    def _run(self, report: ListMigrationReport) -> None:
        source, target, title = report.source_site, report.target_site, report.list_title

        try:
            same_site = normalize_site_url(source).casefold() == normalize_site_url(target).casefold()
        except ValueError as ex:
            raise ListMigrationError(str(ex)) from ex
        if same_site:
            raise ListMigrationError(f"Source and target of list '{title}' are the same site")

        source_list = self._fatal(lambda: self.client.get_list(source, title), "Failed to get list details")
        if source_list.base_template is None:
            raise ListMigrationError("BaseTemplate not found in list details")
        if source_list.is_document_library:
            raise ListMigrationError(f"'{title}' is a document library; only lists are supported")
        source_fields = self._fatal(lambda: self.client.get_fields(source, title), "Failed to fetch fields")

        report.deleted_existing = self._fatal(
            lambda: self.client.delete_list(target, title), "Failed to delete existing list"
        )
        if report.deleted_existing:
            self.log.info("Deleted existing list", list=title)
        report.state = "deleted-if-existed"

        created_list = self._fatal(
            lambda: self.client.create_list(target, ListDescriptor(title=title, base_template=source_list.base_template)),
            "Failed to create list",
        )
        self.log.info("Created list", list=title, base_template=source_list.base_template)
        report.state = "created"

        translator = FieldTranslator(self.client, self.log, source_site=source, target_site=target, list_title=title)
        translation = translator.translate_all(source_fields)
        report.fields_created = len(translation.created)
        report.fields_failed = len(translation.failed)
        report.fields_skipped = len(translation.skipped)
        report.state = "fields-created"

        target_fields, report.fields_visible = self.wait_for_fields(
            target, title, list(translation.created.values())
        )
        if not target_fields:
            target_fields = translation.created_fields
        report.state = "fields-visible"

        if self.settings.copy_views:
            self._migrate_views(report, target_fields, translation.created)
        report.state = "views-created"

        if self.settings.copy_items:
            translated = [f for f in source_fields if f.internal_name in translation.created]
            self._migrate_items(report, translated, translation.created, created_list.item_entity_type)
        report.state = "items-migrated"

        report.state = "done"
        self.log.info(
            "List migration finished",
            list=title,
            fields=report.fields_created,
            views=report.views_created,
            items=report.items_created,
        )

    # ------------------------------ Stufen ------------------------------------

    def wait_for_fields(
        self, site: str, title: str, expected: Sequence[str]
    ) -> Tuple[List[FieldDescriptor], bool]:
        """
        Pollt die Feldliste, bis alle erwarteten InternalNames sichtbar sind.
        Rückgabe: (zuletzt gelesene Felder, sichtbar?)
        """
        timeout = max(0.0, float(self.settings.propagation_timeout))
        interval = float(self.settings.propagation_interval)
        if interval <= 0:
            interval = 1.0
        max_attempts = int(math.ceil(timeout / interval)) + 1
        deadline = self.clock() + timeout
        last: List[FieldDescriptor] = []
        missing: List[str] = list(expected)

        for attempt in range(1, max_attempts + 1):
            try:
                last = self.client.get_fields(site, title)
            except SharePointError as ex:
                self.log.debug("Field list not readable yet", list=title, attempt=attempt, error=ex.text or str(ex))
            else:
                visible = {f.internal_name for f in last}
                missing = [n for n in expected if n not in visible]
                if not missing:
                    self.log.info("Fields visible on target", list=title, attempts=attempt)
                    return last, True
            remaining = deadline - self.clock()
            if remaining <= 0 or attempt == max_attempts:
                break
            self.sleep(min(interval, remaining))

        self.log.warning(
            "Timed out waiting for fields to propagate",
            list=title,
            timeout=timeout,
            missing=",".join(missing),
        )
        return last, False

    def _migrate_views(self, report: ListMigrationReport, target_fields, renamed) -> None:
        source, target, title = report.source_site, report.target_site, report.list_title
        try:
            source_views = self.client.get_views(source, title)
        except SharePointError as ex:
            self.log.error("Failed to fetch views", list=title, status=ex.status, error=ex.text or str(ex))
            return
        index = FieldNameIndex.build(target_fields, renamed=renamed)
        reconciler = FieldNameReconciler(index, self.log)
        reconstructor = ViewReconstructor(
            self.client,
            reconciler,
            self.log,
            source_site=source,
            target_site=target,
            list_title=title,
            default_row_limit=self.settings.default_row_limit,
        )
        for outcome in reconstructor.rebuild_all(source_views):
            if outcome.ok:
                report.views_created += 1
            else:
                report.views_failed += 1

    def _migrate_items(self, report: ListMigrationReport, fields, renamed, entity_type) -> None:
        source, target, title = report.source_site, report.target_site, report.list_title
        resolver = IdentityResolver(self.client, self.log, source_site=source, target_site=target)
        migrator = ItemMigrator(
            self.client,
            resolver,
            self.log,
            source_site=source,
            target_site=target,
            list_title=title,
            fields=fields,
            renamed=renamed,
            entity_type=entity_type,
            page_size=self.settings.page_size,
        )
        try:
            rows = migrator.list_source_items()
        except SharePointError as ex:
            self.log.error("Failed to fetch items", list=title, status=ex.status, error=ex.text or str(ex))
            return
        result = migrator.migrate(rows)
        report.items_created = result.created
        report.items_failed = result.failed
        report.items_skipped = result.skipped

    @staticmethod
    def _fatal(call: Callable[[], Any], message: str) -> Any:
        try:
            return call()
        except SharePointError as ex:
            raise ListMigrationError(f"{message}: {ex.text or ex}") from ex
        except ValueError as ex:
            raise ListMigrationError(f"{message}: {ex}") from ex


# ------------------------------ Einstiegspunkte --------------------------------

def migrate_list(
    source_site: str,
    target_site: str,
    list_title: str,
    credential: Any,
    log_sink: Any,
    *,
    settings: Optional[MigrationSettings] = None,
    session: Optional[requests.Session] = None,
    client: Optional[ListSchemaClient] = None,
) -> ListMigrationReport:
    """
    Migriert eine Liste. credential: Bearer-Token (str) oder Objekt mit
    get_access_token(); log_sink: MigrationLog oder Callable[[str], Any].

    Raises:
        ListMigrationError bei fatalen Fehlern (ex.report enthält den Stand).
    """
    log = as_log(log_sink)
    settings = settings or MigrationSettings()
    if client is None:
        client = ListSchemaClient.from_credential(credential, settings=settings, log=log, session=session)
    return ListMigrator(client, log, settings=settings).run(source_site, target_site, list_title)


def migrate_lists(
    source_site: str,
    target_site: str,
    list_titles: Sequence[str],
    credential: Any,
    log_sink: Any,
    *,
    settings: Optional[MigrationSettings] = None,
    session: Optional[requests.Session] = None,
    client: Optional[ListSchemaClient] = None,
) -> List[ListMigrationReport]:
    """Migriert mehrere Listen nacheinander; ein fataler Fehler betrifft nur seine Liste."""
    log = as_log(log_sink)
    settings = settings or MigrationSettings()
    if client is None:
        client = ListSchemaClient.from_credential(credential, settings=settings, log=log, session=session)
    migrator = ListMigrator(client, log, settings=settings)

    reports: List[ListMigrationReport] = []
    for title in list_titles:
        try:
            reports.append(migrator.run(source_site, target_site, title))
        except ListMigrationError as ex:
            reports.append(ex.report or ListMigrationReport(title, source_site, target_site, error=str(ex)))
    return reports
