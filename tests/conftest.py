"""Shared test fixtures for the spclone test suite."""

from __future__ import annotations

import copy
import itertools
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set

import pandas as pd
import pytest

from spclone.core.http import NotFound, SharePointError
from spclone.core.logbuffer import MigrationLog
from spclone.core.util import normalize_site_url
from spclone.domains.sharepoint.models import (
    FieldDescriptor,
    IdentityRef,
    ItemRecord,
    ListDescriptor,
    ViewDescriptor,
)

SOURCE = "https://contoso.sharepoint.com/sites/A"
TARGET = "https://contoso.sharepoint.com/sites/B"

_KIND_TYPES = {2: "Text", 3: "Note", 4: "DateTime", 8: "Boolean", 9: "Number", 20: "User"}


def builtin_fields() -> List[FieldDescriptor]:
    """Fields every SharePoint list carries implicitly."""
    return [
        FieldDescriptor("Title", "Title", "Text", type_kind=2),
        FieldDescriptor("ID", "ID", "Counter", type_kind=5, read_only=True),
        FieldDescriptor("Content Type", "ContentType", "Computed", type_kind=12),
        FieldDescriptor("Attachments", "Attachments", "Attachments", type_kind=19),
        FieldDescriptor("Created", "Created", "DateTime", type_kind=4, read_only=True),
        FieldDescriptor("Modified", "Modified", "DateTime", type_kind=4, read_only=True),
        FieldDescriptor("Created By", "Author", "User", type_kind=20, read_only=True),
        FieldDescriptor("Modified By", "Editor", "User", type_kind=20, read_only=True),
        FieldDescriptor("Title", "LinkTitle", "Computed", type_kind=12, read_only=True),
        FieldDescriptor("Version", "_UIVersionString", "Text", type_kind=2, hidden=True),
    ]


@dataclass
class FakeList:
    descriptor: ListDescriptor
    fields: List[FieldDescriptor] = field(default_factory=builtin_fields)
    views: List[ViewDescriptor] = field(default_factory=list)
    items: List[Dict[str, Any]] = field(default_factory=list)
    field_formatters: Dict[str, str] = field(default_factory=dict)
    view_formatters: Dict[str, str] = field(default_factory=dict)

    @property
    def internal_names(self) -> List[str]:
        return [f.internal_name for f in self.fields]


class FakeSchemaClient:
    """In-memory stand-in for ListSchemaClient.

    ``fail`` maps an operation name to the set of keys (field title, view
    title, item title, login, list title) for which the call raises a
    SharePointError with status 400.
    """

    def __init__(self) -> None:
        self.sites: Dict[str, Dict[str, FakeList]] = {}
        self.users: Dict[str, Dict[int, IdentityRef]] = {}
        self.ensured: Dict[str, Dict[str, int]] = {}
        self.fail: Dict[str, Set[str]] = {}
        self.calls: List[tuple] = []
        self._ids = itertools.count(1)

    # ------------------------------ setup helpers -----------------------------

    def add_list(
        self,
        site: str,
        title: str,
        *,
        base_template: Optional[int] = 100,
        fields: Sequence[FieldDescriptor] = (),
        views: Sequence[ViewDescriptor] = (),
        items: Sequence[Dict[str, Any]] = (),
        base_type: int = 0,
    ) -> FakeList:
        desc = ListDescriptor(
            title=title,
            base_template=base_template,
            id=f"guid-{next(self._ids)}",
            item_entity_type=f"SP.Data.{title}ListItem",
            base_type=base_type,
            item_count=len(items),
        )
        lst = FakeList(descriptor=desc)
        lst.fields.extend(copy.deepcopy(list(fields)))
        for v in views:
            v = copy.deepcopy(v)
            v.id = v.id or f"view-{next(self._ids)}"
            lst.views.append(v)
        lst.items.extend(copy.deepcopy(list(items)))
        self.sites.setdefault(normalize_site_url(site), {})[title] = lst
        return lst

    def add_user(self, site: str, user: IdentityRef) -> None:
        self.users.setdefault(normalize_site_url(site), {})[user.id] = user

    def lists_on(self, site: str) -> Dict[str, FakeList]:
        return self.sites.setdefault(normalize_site_url(site), {})

    def list_on(self, site: str, title: str) -> FakeList:
        return self.lists_on(site)[title]

    # ------------------------------ internals ---------------------------------

    def _record(self, op: str, *args: Any) -> None:
        self.calls.append((op,) + args)

    def _maybe_fail(self, op: str, key: Optional[str]) -> None:
        if key is not None and key in self.fail.get(op, set()):
            raise SharePointError(f"{op} failed", status=400, text=f"{op} rejected '{key}'")

    def _get(self, site: str, title: str) -> FakeList:
        lst = self.lists_on(site).get(title)
        if lst is None:
            raise NotFound("list not found", status=404, text=f"List '{title}' does not exist")
        return lst

    # ------------------------------ lists -------------------------------------

    def get_list(self, site: str, title: str) -> ListDescriptor:
        self._record("get_list", site, title)
        self._maybe_fail("get_list", title)
        return copy.deepcopy(self._get(site, title).descriptor)

    def get_list_by_id(self, site: str, list_id: str) -> ListDescriptor:
        self._record("get_list_by_id", site, list_id)
        for lst in self.lists_on(site).values():
            if lst.descriptor.id == list_id:
                return copy.deepcopy(lst.descriptor)
        raise NotFound("list not found", status=404, text=f"List {list_id} does not exist")

    def delete_list(self, site: str, title: str) -> bool:
        self._record("delete_list", site, title)
        return self.lists_on(site).pop(title, None) is not None

    def create_list(self, site: str, descriptor: ListDescriptor) -> ListDescriptor:
        self._record("create_list", site, descriptor.title)
        self._maybe_fail("create_list", descriptor.title)
        lst = self.add_list(site, descriptor.title, base_template=descriptor.base_template)
        return copy.deepcopy(lst.descriptor)

    def list_site_lists(self, site: str, *, include_hidden: bool = False) -> pd.DataFrame:
        rows = [
            {
                "id": lst.descriptor.id,
                "title": lst.descriptor.title,
                "baseTemplate": lst.descriptor.base_template,
                "kind": "Document Library" if lst.descriptor.is_document_library else "List",
                "itemCount": len(lst.items),
                "hidden": False,
            }
            for lst in self.lists_on(site).values()
        ]
        return pd.DataFrame(rows, columns=["id", "title", "baseTemplate", "kind", "itemCount", "hidden"])

    # ------------------------------ fields ------------------------------------

    def get_fields(self, site: str, title: str) -> List[FieldDescriptor]:
        self._record("get_fields", site, title)
        self._maybe_fail("get_fields", title)
        return copy.deepcopy(self._get(site, title).fields)

    def create_field(self, site: str, title: str, payload: Dict[str, Any]) -> FieldDescriptor:
        self._record("create_field", site, title, copy.deepcopy(payload))
        self._maybe_fail("create_field", payload["Title"])
        lst = self._get(site, title)
        meta = payload["__metadata"]["type"]
        if meta == "SP.FieldUser":
            type_name = "UserMulti" if payload.get("AllowMultipleValues") else "User"
        elif meta == "SP.FieldDateTime":
            type_name = "DateTime"
        elif meta == "SP.FieldLookup":
            type_name = "LookupMulti" if payload.get("AllowMultipleValues") else "Lookup"
        else:
            type_name = _KIND_TYPES.get(payload.get("FieldTypeKind"), "Text")
        created = FieldDescriptor(
            title=payload["Title"],
            internal_name=payload["Title"].replace(" ", "_x0020_"),
            type_name=type_name,
            type_kind=payload.get("FieldTypeKind"),
            required=payload.get("Required", False),
            lookup_list_id=payload.get("LookupList"),
            lookup_field=payload.get("LookupField"),
        )
        lst.fields.append(created)
        return copy.deepcopy(created)

    def create_field_as_xml(self, site: str, title: str, schema_xml: str) -> FieldDescriptor:
        self._record("create_field_as_xml", site, title, schema_xml)
        node = ET.fromstring(schema_xml)
        self._maybe_fail("create_field", node.get("DisplayName"))
        lst = self._get(site, title)
        created = FieldDescriptor(
            title=node.get("DisplayName"),
            internal_name=node.get("Name"),
            type_name=node.get("Type"),
            choices=[c.text for c in node.iter("CHOICE")],
        )
        lst.fields.append(created)
        return copy.deepcopy(created)

    def get_field_formatter(self, site: str, title: str, field_name: str) -> Optional[str]:
        self._record("get_field_formatter", site, title, field_name)
        return self._get(site, title).field_formatters.get(field_name)

    # ------------------------------ views -------------------------------------

    def get_views(self, site: str, title: str) -> List[ViewDescriptor]:
        self._record("get_views", site, title)
        self._maybe_fail("get_views", title)
        return copy.deepcopy(self._get(site, title).views)

    def get_view_formatter(self, site: str, title: str, view_id: str) -> Optional[str]:
        self._record("get_view_formatter", site, title, view_id)
        return self._get(site, title).view_formatters.get(view_id)

    def create_view(self, site: str, title: str, view: ViewDescriptor, *, default_row_limit: int = 30) -> str:
        self._record("create_view", site, title, view.title)
        self._maybe_fail("create_view", view.title)
        lst = self._get(site, title)
        new = ViewDescriptor(
            title=view.title,
            query=view.query,
            row_limit=view.row_limit or default_row_limit,
            paged=view.paged is not False,
            default_view=view.default_view,
            field_refs=["LinkTitle"],
            id=f"view-{next(self._ids)}",
        )
        lst.views.append(new)
        return new.id

    def _view(self, site: str, title: str, view_id: str) -> ViewDescriptor:
        for v in self._get(site, title).views:
            if v.id == view_id:
                return v
        raise NotFound("view not found", status=404, text=view_id)

    def clear_view_fields(self, site: str, title: str, view_id: str) -> None:
        self._record("clear_view_fields", site, title, view_id)
        self._view(site, title, view_id).field_refs = []

    def add_view_field(self, site: str, title: str, view_id: str, field_name: str) -> None:
        self._record("add_view_field", site, title, view_id, field_name)
        if field_name not in self._get(site, title).internal_names:
            raise SharePointError("add view field failed", status=400, text=f"Column '{field_name}' does not exist")
        self._view(site, title, view_id).field_refs.append(field_name)

    def set_view_fields(self, site: str, title: str, view_id: str, field_names: Sequence[str]):
        self._record("set_view_fields", site, title, view_id, list(field_names))
        self.clear_view_fields(site, title, view_id)
        out = []
        for name in field_names:
            try:
                self.add_view_field(site, title, view_id, name)
            except SharePointError as ex:
                out.append((name, False, ex.text))
            else:
                out.append((name, True, ""))
        return out

    def patch_custom_formatting(
        self, site: str, title: str, target: str, key: str, document: str, *, field_type: str = "SP.Field"
    ) -> None:
        self._record("patch_custom_formatting", site, title, target, key)
        self._maybe_fail("patch_custom_formatting", key)
        lst = self._get(site, title)
        if target == "view":
            lst.view_formatters[key] = document
        else:
            lst.field_formatters[key] = document

    # ------------------------------ items -------------------------------------

    def get_items(self, site: str, title: str, *, select=None, expand=None, page_size=None) -> List[ItemRecord]:
        self._record("get_items", site, title)
        self._maybe_fail("get_items", title)
        return [
            ItemRecord(id=it.get("Id"), title=it.get("Title"), values={"Id": it.get("Id"), "Title": it.get("Title")})
            for it in self._get(site, title).items
        ]

    def get_item(self, site: str, title: str, item_id: int, *, select=None, expand=None) -> ItemRecord:
        self._record("get_item", site, title, item_id, list(select or []), list(expand or []))
        for it in self._get(site, title).items:
            if it.get("Id") == item_id:
                values = {"__metadata": {"type": "SP.Data.ListItem"}}
                values.update(copy.deepcopy(it))
                return ItemRecord.from_rest(values)
        raise NotFound("item not found", status=404, text=str(item_id))

    def create_item(self, site: str, title: str, entity_type: Optional[str], values: Dict[str, Any]) -> ItemRecord:
        self._record("create_item", site, title, entity_type, copy.deepcopy(dict(values)))
        self._maybe_fail("create_item", values.get("Title"))
        lst = self._get(site, title)
        new = {"Id": len(lst.items) + 1}
        new.update(copy.deepcopy(dict(values)))
        lst.items.append(new)
        return ItemRecord.from_rest(new)

    # ------------------------------ users -------------------------------------

    def ensure_user(self, site: str, logon_name: str) -> int:
        self._record("ensure_user", site, logon_name)
        self._maybe_fail("ensure_user", logon_name)
        known = self.ensured.setdefault(normalize_site_url(site), {})
        if logon_name not in known:
            known[logon_name] = 100 + len(known)
        return known[logon_name]

    def get_user_by_id(self, site: str, user_id: int) -> IdentityRef:
        self._record("get_user_by_id", site, user_id)
        user = self.users.get(normalize_site_url(site), {}).get(user_id)
        if user is None:
            raise NotFound("user not found", status=404, text=str(user_id))
        return copy.deepcopy(user)

    def ops(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_client():
    return FakeSchemaClient()


@pytest.fixture()
def log():
    return MigrationLog(echo=False)


@pytest.fixture()
def tasks_source(fake_client):
    """The 'Tasks' list on the source site: two custom fields, one view, one item."""
    return fake_client.add_list(
        SOURCE,
        "Tasks",
        base_template=171,
        fields=[
            FieldDescriptor("Start Date", "StartDate", "DateTime", type_kind=4),
            FieldDescriptor("Assigned to", "Assignedto", "User", type_kind=20),
        ],
        views=[ViewDescriptor("All Tasks", field_refs=["Title", "Start Date", "Assigned to"], default_view=True)],
        items=[
            {
                "Id": 1,
                "Title": "A",
                "StartDate": "2024-01-01",
                "Assignedto": {"__metadata": {"type": "SP.Data.UserInfoItem"}, "Id": 7, "EMail": "a@x.com"},
            }
        ],
    )
