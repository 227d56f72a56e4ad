# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.migration.views — Ansichten auf der Ziel-Liste nachbauen
===============================================================================
Ablauf je Ansicht:
    (a) View-Hülle anlegen (Titel, ViewQuery, RowLimit=30 falls leer,
        Paged=True falls nicht gesetzt, DefaultView)
    (b) automatisch gesetzte ViewFields leeren
    (c) jede Quell-Feldreferenz über den Reconciler auflösen und in
        Originalreihenfolge hinzufügen — Einzelfehler werden geloggt und
        übersprungen
    (d) CustomFormatter der Quell-Ansicht übernehmen (Warnung bei Fehler)

Ein Totalausfall einer Ansicht wird geloggt; die nächste Ansicht läuft weiter.

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from spclone.core.http import SharePointError
from spclone.core.logbuffer import as_log
from spclone.domains.sharepoint.models import ViewDescriptor
from spclone.migration.reconciler import FieldNameReconciler

__all__ = ["ViewOutcome", "ViewReconstructor"]


@dataclass
class ViewOutcome:
    title: str
    view_id: Optional[str] = None
    fields_added: List[str] = field(default_factory=list)
    fields_failed: List[str] = field(default_factory=list)
    formatting_applied: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ViewReconstructor:
    def __init__(
        self,
        client,
        reconciler: FieldNameReconciler,
        log=None,
        *,
        source_site: str,
        target_site: str,
        list_title: str,
        default_row_limit: int = 30,
    ) -> None:
        self.client = client
        self.reconciler = reconciler
        self.log = as_log(log)
        self.source_site = source_site
        self.target_site = target_site
        self.list_title = list_title
        self.default_row_limit = default_row_limit

    def rebuild_all(self, source_views: Sequence[ViewDescriptor]) -> List[ViewOutcome]:
        return [self.rebuild(v) for v in source_views]

    def rebuild(self, view: ViewDescriptor) -> ViewOutcome:
        """Baut eine Ansicht nach; Fehler der Hülle landen in outcome.error."""
        outcome = ViewOutcome(title=view.title)
        try:
            outcome.view_id = self.client.create_view(
                self.target_site, self.list_title, view, default_row_limit=self.default_row_limit
            )
            self._set_fields(view, outcome)
        except SharePointError as ex:
            outcome.error = ex.text or str(ex)
            self.log.error("Failed to create view", view=view.title, status=ex.status, error=outcome.error)
            return outcome

        self._copy_formatter(view, outcome)
        self.log.info(
            "Created view",
            view=view.title,
            fields=len(outcome.fields_added),
            failed_fields=len(outcome.fields_failed),
        )
        return outcome

    # ------------------------------ intern ------------------------------------

    def _set_fields(self, view: ViewDescriptor, outcome: ViewOutcome) -> None:
        names = [r.name for r in self.reconciler.resolve_all(view.field_refs)]
        results = self.client.set_view_fields(self.target_site, self.list_title, outcome.view_id, names)
        for name, ok, error in results:
            if ok:
                outcome.fields_added.append(name)
            else:
                outcome.fields_failed.append(name)
                self.log.warning("Failed to add view field", view=view.title, field=name, error=error)

    def _copy_formatter(self, view: ViewDescriptor, outcome: ViewOutcome) -> None:
        formatter = view.custom_formatter
        if not formatter and view.id:
            try:
                formatter = self.client.get_view_formatter(self.source_site, self.list_title, view.id)
            except SharePointError as ex:
                self.log.warning("Failed to read view formatting", view=view.title, error=ex.text or str(ex))
                return
        if not formatter:
            return
        try:
            self.client.patch_custom_formatting(self.target_site, self.list_title, "view", outcome.view_id, formatter)
        except SharePointError as ex:
            self.log.warning("Failed to apply view formatting", view=view.title, error=ex.text or str(ex))
            return
        outcome.formatting_applied = True
