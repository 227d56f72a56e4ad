"""Unit tests for the REST-level list, field, view, item and user helpers."""

from unittest.mock import MagicMock

import pandas as pd
import pytest

from spclone.core.http import NotFound, SharePointError
from spclone.domains.sharepoint.lists import definition, fields, items, views
from spclone.domains.sharepoint.models import ListDescriptor, ViewDescriptor
from spclone.domains.sharepoint.schema_client import ListSchemaClient
from spclone.domains.sharepoint.sites import lists as site_lists
from spclone.domains.sharepoint.sites import users

SITE = "https://contoso.sharepoint.com/sites/A"
LIST = f"{SITE}/_api/web/lists/GetByTitle('Tasks')"


@pytest.fixture()
def sc():
    return MagicMock(name="sc")


class TestDefinition:
    def test_get_list(self, sc):
        sc.get_json.return_value = {"Title": "Tasks", "BaseTemplate": 171}

        d = definition.get_list(sc, site_url=SITE, list_title="Tasks")

        assert d.base_template == 171
        assert sc.get_json.call_args.args[0] == LIST

    def test_get_list_by_id(self, sc):
        sc.get_json.return_value = {"Title": "Projects"}

        definition.get_list_by_id(sc, site_url=SITE, list_id="{abc}")

        assert sc.get_json.call_args.args[0] == f"{SITE}/_api/web/lists(guid'abc')"

    def test_delete_missing_list_returns_false(self, sc):
        sc.request.side_effect = NotFound("gone", status=404)

        assert definition.delete_list(sc, site_url=SITE, list_title="Tasks") is False

    def test_delete_existing_list(self, sc):
        assert definition.delete_list(sc, site_url=SITE, list_title="Tasks") is True
        args, kwargs = sc.request.call_args
        assert args == ("DELETE", LIST)
        assert kwargs["headers"] == {"IF-MATCH": "*"}

    def test_delete_other_errors_propagate(self, sc):
        sc.request.side_effect = SharePointError("denied", status=403)

        with pytest.raises(SharePointError):
            definition.delete_list(sc, site_url=SITE, list_title="Tasks")

    def test_create_list_payload(self, sc):
        sc.post_json.return_value = {"Title": "Tasks", "ListItemEntityTypeFullName": "SP.Data.TasksListItem"}

        created = definition.create_list(sc, site_url=SITE, descriptor=ListDescriptor("Tasks", base_template=171))

        payload = sc.post_json.call_args.kwargs["json"]
        assert payload == {"__metadata": {"type": "SP.List"}, "Title": "Tasks", "BaseTemplate": 171}
        assert created.base_template == 171
        assert created.item_entity_type == "SP.Data.TasksListItem"

    def test_create_list_requires_template(self, sc):
        with pytest.raises(ValueError):
            definition.create_list(sc, site_url=SITE, descriptor=ListDescriptor("Tasks"))
        sc.post_json.assert_not_called()


class TestFields:
    def test_get_fields(self, sc):
        sc.get_results.return_value = iter([{"Title": "Title", "InternalName": "Title", "TypeAsString": "Text"}])

        out = fields.get_fields(sc, site_url=SITE, list_title="Tasks")

        assert [f.internal_name for f in out] == ["Title"]
        assert sc.get_results.call_args.args[0] == f"{LIST}/fields"

    def test_create_field_as_xml(self, sc):
        sc.post_json.return_value = {"InternalName": "Status", "TypeAsString": "Choice"}

        fields.create_field_as_xml(sc, site_url=SITE, list_title="Tasks", schema_xml="<Field/>")

        url = sc.post_json.call_args.args[0]
        params = sc.post_json.call_args.kwargs["json"]["parameters"]
        assert url == f"{LIST}/fields/CreateFieldAsXml"
        assert params["SchemaXml"] == "<Field/>"
        assert params["Options"] == fields.XML_FIELD_OPTIONS

    def test_get_field_formatter(self, sc):
        sc.get_json.return_value = {"CustomFormatter": ""}

        assert fields.get_field_formatter(sc, site_url=SITE, list_title="Tasks", field_name="Status") is None
        assert "GetByInternalNameOrTitle('Status')" in sc.get_json.call_args.args[0]

    def test_patch_field_formatter(self, sc):
        fields.patch_field_formatter(
            sc, site_url=SITE, list_title="Tasks", field_name="Status", formatter="{}", field_type="SP.FieldChoice"
        )

        assert sc.merge.call_args.kwargs["json"] == {"__metadata": {"type": "SP.FieldChoice"}, "CustomFormatter": "{}"}


class TestViews:
    def test_get_views_skips_hidden_and_loads_fields(self, sc):
        sc.get_results.return_value = iter([
            {"Title": "All Items", "Id": "{v1}"},
            {"Title": "Hidden", "Id": "{v2}", "Hidden": True},
        ])
        sc.get_json.return_value = {"Items": {"results": ["LinkTitle", "Status"]}}

        out = views.get_views(sc, site_url=SITE, list_title="Tasks")

        assert [v.title for v in out] == ["All Items"]
        assert out[0].field_refs == ["LinkTitle", "Status"]
        assert sc.get_json.call_args.args[0] == f"{LIST}/views('v1')/ViewFields"

    def test_create_view_payload(self, sc):
        sc.post_json.return_value = {"Id": "{new}"}

        view_id = views.create_view(
            sc, site_url=SITE, list_title="Tasks", view=ViewDescriptor("Mine", paged=False), default_row_limit=30
        )

        payload = sc.post_json.call_args.kwargs["json"]
        assert view_id == "new"
        assert payload["RowLimit"] == 30
        assert payload["Paged"] is False
        assert payload["PersonalView"] is False

    def test_create_view_without_id_raises(self, sc):
        sc.post_json.return_value = {}

        with pytest.raises(SharePointError):
            views.create_view(sc, site_url=SITE, list_title="Tasks", view=ViewDescriptor("Mine"))

    def test_set_view_fields_continues_after_failure(self, sc):
        def post(url, *a, **kw):
            if "Bogus" in url:
                raise SharePointError("bad", status=400, text="Column 'Bogus' does not exist")
            return {}

        sc.post_json.side_effect = post

        out = views.set_view_fields(sc, site_url=SITE, list_title="Tasks", view_id="v1", field_names=["Title", "Bogus", "Status"])

        assert [(n, ok) for n, ok, _ in out] == [("Title", True), ("Bogus", False), ("Status", True)]
        urls = [c.args[0] for c in sc.post_json.call_args_list]
        assert urls[0].endswith("ViewFields/RemoveAllViewFields")
        assert urls[-1].endswith("AddViewField('Status')")


class TestItems:
    def test_build_item_query(self):
        params = items.build_item_query(["Id", "Title", "Id"], ["Author"], 500)
        assert params == {"$select": "Id,Title", "$expand": "Author", "$top": "500"}

    def test_create_item_default_entity(self, sc):
        sc.post_json.return_value = {"Id": 3}

        rec = items.create_item(sc, site_url=SITE, list_title="Tasks", entity_type=None, values={"Title": "A"})

        assert rec.id == 3
        assert sc.post_json.call_args.kwargs["json"] == {"__metadata": {"type": "SP.ListItem"}, "Title": "A"}

    def test_get_item_url(self, sc):
        sc.get_json.return_value = {"Id": 4}

        items.get_item(sc, site_url=SITE, list_title="Tasks", item_id=4)

        assert sc.get_json.call_args.args[0] == f"{LIST}/items(4)"


class TestUsers:
    def test_ensure_user(self, sc):
        sc.post_json.return_value = {"Id": 12}

        assert users.ensure_user(sc, site_url=SITE, logon_name="i:0#.f|membership|a@x.com") == 12
        assert sc.post_json.call_args.kwargs["json"] == {"logonName": "i:0#.f|membership|a@x.com"}

    def test_ensure_user_without_id(self, sc):
        sc.post_json.return_value = {}

        with pytest.raises(SharePointError):
            users.ensure_user(sc, site_url=SITE, logon_name="nobody")

    def test_get_user_by_id(self, sc):
        sc.get_json.return_value = {"Id": 7, "LoginName": "i:0#.f|membership|a@x.com"}

        ref = users.get_user_by_id(sc, site_url=SITE, user_id=7)

        assert ref.login_name == "i:0#.f|membership|a@x.com"
        assert sc.get_json.call_args.args[0] == f"{SITE}/_api/web/getuserbyid(7)"


class TestSiteLists:
    def test_list_df_kinds_and_hidden(self, sc):
        sc.get_results.return_value = iter([
            {"Id": "{1}", "Title": "Tasks", "BaseTemplate": 171, "BaseType": 0},
            {"Id": "{2}", "Title": "Documents", "BaseTemplate": 101, "BaseType": 1},
            {"Id": "{3}", "Title": "Workflow", "BaseTemplate": 140, "Hidden": True},
        ])

        df, info = site_lists.list_df(sc, SITE)

        assert isinstance(df, pd.DataFrame)
        assert df["title"].tolist() == ["Tasks", "Documents"]
        assert df["kind"].tolist() == [site_lists.KIND_LIST, site_lists.KIND_LIBRARY]
        assert info["count"] == 2


class TestListSchemaClient:
    def test_delegates_with_site_and_title(self, sc):
        sc.get_json.return_value = {"Title": "Tasks", "BaseTemplate": 100}
        client = ListSchemaClient(sc)

        assert client.get_list(SITE, "Tasks").base_template == 100
        assert sc.get_json.call_args.args[0] == LIST

    def test_patch_view_formatting(self, sc):
        ListSchemaClient(sc).patch_custom_formatting(SITE, "Tasks", "view", "v1", "{}")

        assert sc.merge.call_args.args[0] == f"{LIST}/views('v1')"
        assert sc.merge.call_args.kwargs["json"]["__metadata"] == {"type": "SP.View"}

    def test_patch_field_formatting(self, sc):
        ListSchemaClient(sc).patch_custom_formatting(SITE, "Tasks", "field", "Status", "{}")

        assert "GetByInternalNameOrTitle('Status')" in sc.merge.call_args.args[0]

    def test_unknown_formatting_target(self, sc):
        with pytest.raises(ValueError):
            ListSchemaClient(sc).patch_custom_formatting(SITE, "Tasks", "list", "x", "{}")
        sc.merge.assert_not_called()

    def test_from_credential_uses_settings(self):
        from spclone.core.config.settings import MigrationSettings

        client = ListSchemaClient.from_credential("tok", settings=MigrationSettings(request_timeout=9, max_retries=2))

        assert client.sc.timeout == 9
        assert client.sc.max_retries == 2
