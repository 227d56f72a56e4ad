# -*- coding: utf-8 -*-
"""
===============================================================================
spclone.domains.sharepoint.schema_client — Typisierter Zugriff auf Listen-Schemata
===============================================================================
Zweck:
    - Bündelt die Domain-Funktionen (definition/fields/views/items/users) hinter
      einem Objekt, das die Migrationskomponenten gemeinsam nutzen.
    - Jede Methode ist genau ein synchroner REST-Roundtrip (Lesen mit Paging);
      Fehler kommen als SharePointError (Status + Response-Text) zurück.
    - Keine Wiederholungen auf dieser Ebene.

Beispiel:
    client = ListSchemaClient.from_credential(token, log=log)
    desc = client.get_list("https://contoso.sharepoint.com/sites/A", "Tasks")
    fields = client.get_fields("https://contoso.sharepoint.com/sites/A", "Tasks")

Autor: spclone maintainers
Version: 1.0.0 (2026-10-19)
===============================================================================
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
import requests

from spclone.core.auth import as_token_provider
from spclone.core.config.settings import MigrationSettings
from spclone.core.http import SharePointClient
from spclone.domains.sharepoint.lists import definition, fields, items, views
from spclone.domains.sharepoint.models import (
    FieldDescriptor,
    IdentityRef,
    ItemRecord,
    ListDescriptor,
    ViewDescriptor,
)
from spclone.domains.sharepoint.sites import lists as site_lists
from spclone.domains.sharepoint.sites import users

__all__ = ["ListSchemaClient", "FORMAT_TARGETS"]

FORMAT_TARGETS = ("view", "field")


class ListSchemaClient:
    """Listen-Schema-Zugriff auf beliebigen Sites über einen SharePointClient."""

    def __init__(self, sc: SharePointClient) -> None:
        self.sc = sc

    @classmethod
    def from_credential(
        cls,
        credential: Any,
        *,
        settings: Optional[MigrationSettings] = None,
        log: Optional[Any] = None,
        session: Optional[requests.Session] = None,
    ) -> "ListSchemaClient":
        settings = settings or MigrationSettings()
        sc = SharePointClient(
            as_token_provider(credential),
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            session=session,
            log=log,
        )
        return cls(sc)

    # ------------------------------- Listen -----------------------------------

    def get_list(self, site: str, title: str) -> ListDescriptor:
        return definition.get_list(self.sc, site_url=site, list_title=title)

    def get_list_by_id(self, site: str, list_id: str) -> ListDescriptor:
        return definition.get_list_by_id(self.sc, site_url=site, list_id=list_id)

    def delete_list(self, site: str, title: str) -> bool:
        return definition.delete_list(self.sc, site_url=site, list_title=title)

    def create_list(self, site: str, descriptor: ListDescriptor) -> ListDescriptor:
        return definition.create_list(self.sc, site_url=site, descriptor=descriptor)

    def list_site_lists(self, site: str, *, include_hidden: bool = False) -> pd.DataFrame:
        df, _ = site_lists.list_df(self.sc, site, include_hidden=include_hidden)
        return df

    # ------------------------------- Felder -----------------------------------

    def get_fields(self, site: str, title: str) -> List[FieldDescriptor]:
        return fields.get_fields(self.sc, site_url=site, list_title=title)

    def create_field(self, site: str, title: str, payload: Dict[str, Any]) -> FieldDescriptor:
        return fields.create_field(self.sc, site_url=site, list_title=title, payload=payload)

    def create_field_as_xml(self, site: str, title: str, schema_xml: str) -> FieldDescriptor:
        return fields.create_field_as_xml(self.sc, site_url=site, list_title=title, schema_xml=schema_xml)

    def get_field_formatter(self, site: str, title: str, field_name: str) -> Optional[str]:
        return fields.get_field_formatter(self.sc, site_url=site, list_title=title, field_name=field_name)

    # ------------------------------- Ansichten --------------------------------

    def get_views(self, site: str, title: str) -> List[ViewDescriptor]:
        return views.get_views(self.sc, site_url=site, list_title=title)

    def get_view_formatter(self, site: str, title: str, view_id: str) -> Optional[str]:
        return views.get_view_formatter(self.sc, site_url=site, list_title=title, view_id=view_id)

    def create_view(self, site: str, title: str, view: ViewDescriptor, *, default_row_limit: int = 30) -> str:
        return views.create_view(
            self.sc, site_url=site, list_title=title, view=view, default_row_limit=default_row_limit
        )

    def clear_view_fields(self, site: str, title: str, view_id: str) -> None:
        views.clear_view_fields(self.sc, site_url=site, list_title=title, view_id=view_id)

    def add_view_field(self, site: str, title: str, view_id: str, field_name: str) -> None:
        views.add_view_field(self.sc, site_url=site, list_title=title, view_id=view_id, field_name=field_name)

    def set_view_fields(
        self, site: str, title: str, view_id: str, field_names: Sequence[str]
    ) -> List[Tuple[str, bool, str]]:
        return views.set_view_fields(
            self.sc, site_url=site, list_title=title, view_id=view_id, field_names=field_names
        )

    # --------------------------- Custom Formatting ----------------------------

    def patch_custom_formatting(
        self,
        site: str,
        title: str,
        target: str,
        key: str,
        document: str,
        *,
        field_type: str = "SP.Field",
    ) -> None:
        """
        Setzt CustomFormatter auf einer Ansicht (target='view', key=View-Id) oder
        einem Feld (target='field', key=InternalName).
        """
        if target == "view":
            views.patch_view_formatter(self.sc, site_url=site, list_title=title, view_id=key, formatter=document)
        elif target == "field":
            fields.patch_field_formatter(
                self.sc, site_url=site, list_title=title, field_name=key, formatter=document, field_type=field_type
            )
        else:
            raise ValueError(f"Unknown formatting target {target!r}; expected one of {FORMAT_TARGETS}")

    # ------------------------------- Einträge ---------------------------------

    def get_items(
        self,
        site: str,
        title: str,
        *,
        select: Optional[Sequence[str]] = None,
        expand: Optional[Sequence[str]] = None,
        page_size: Optional[int] = None,
    ) -> List[ItemRecord]:
        return items.get_items(
            self.sc, site_url=site, list_title=title, select=select, expand=expand, page_size=page_size
        )

    def get_item(
        self,
        site: str,
        title: str,
        item_id: int,
        *,
        select: Optional[Sequence[str]] = None,
        expand: Optional[Sequence[str]] = None,
    ) -> ItemRecord:
        return items.get_item(
            self.sc, site_url=site, list_title=title, item_id=item_id, select=select, expand=expand
        )

    def create_item(self, site: str, title: str, entity_type: Optional[str], values: Mapping[str, Any]) -> ItemRecord:
        return items.create_item(self.sc, site_url=site, list_title=title, entity_type=entity_type, values=values)

    # ------------------------------- Identitäten ------------------------------

    def ensure_user(self, site: str, logon_name: str) -> int:
        return users.ensure_user(self.sc, site_url=site, logon_name=logon_name)

    def get_user_by_id(self, site: str, user_id: int) -> IdentityRef:
        return users.get_user_by_id(self.sc, site_url=site, user_id=user_id)
