"""Unit tests for rebuilding views on the target list."""

import pytest

from spclone.domains.sharepoint.models import FieldDescriptor, ViewDescriptor
from spclone.migration.reconciler import FieldNameIndex, FieldNameReconciler
from spclone.migration.views import ViewReconstructor
from tests.conftest import SOURCE, TARGET


@pytest.fixture()
def target_tasks(fake_client):
    lst = fake_client.add_list(TARGET, "Tasks")
    lst.fields.append(FieldDescriptor("Start Date", "Start_x0020_Date", "DateTime"))
    return lst


@pytest.fixture()
def reconstructor(fake_client, log, target_tasks):
    reconciler = FieldNameReconciler(FieldNameIndex.build(target_tasks.fields), log)
    return ViewReconstructor(
        fake_client, reconciler, log, source_site=SOURCE, target_site=TARGET, list_title="Tasks"
    )


class TestRebuild:
    def test_fields_in_source_order(self, reconstructor, target_tasks, fake_client):
        view = ViewDescriptor("By Date", field_refs=["Start Date", "LinkTitle"], custom_formatter="{}")

        outcome = reconstructor.rebuild(view)

        assert outcome.ok
        created = target_tasks.views[-1]
        assert created.field_refs == ["Start_x0020_Date", "LinkTitle"]
        assert created.row_limit == 30
        assert outcome.formatting_applied
        assert target_tasks.view_formatters[outcome.view_id] == "{}"
        assert fake_client.ops("get_view_formatter") == []

    def test_fields_set_in_one_call(self, reconstructor, fake_client):
        outcome = reconstructor.rebuild(ViewDescriptor("By Date", field_refs=["Start Date", "Title"]))

        assert fake_client.ops("set_view_fields") == [
            ("set_view_fields", TARGET, "Tasks", outcome.view_id, ["Start_x0020_Date", "Title"]),
        ]
        assert len(fake_client.ops("clear_view_fields")) == 1

    def test_unknown_field_does_not_abort_view(self, reconstructor, log):
        view = ViewDescriptor("Mixed", field_refs=["Ghost", "Title"])

        outcome = reconstructor.rebuild(view)

        assert outcome.ok
        assert outcome.fields_failed == ["Ghost"]
        assert outcome.fields_added == ["Title"]
        assert any(m.startswith("Failed to add view field | view=Mixed field=Ghost") for m in log.messages("WARNING"))

    def test_create_failure_is_reported(self, reconstructor, fake_client, log):
        fake_client.fail["create_view"] = {"Broken"}

        outcomes = reconstructor.rebuild_all([ViewDescriptor("Broken"), ViewDescriptor("Fine", field_refs=["Title"])])

        assert [o.ok for o in outcomes] == [False, True]
        assert "create_view rejected 'Broken'" in outcomes[0].error
        assert log.count("ERROR") == 1

    def test_formatter_fetched_from_source(self, reconstructor, fake_client, target_tasks):
        src = fake_client.add_list(SOURCE, "Tasks", views=[ViewDescriptor("All", id="v-src")])
        src.view_formatters["v-src"] = '{"hideSelection":true}'

        outcome = reconstructor.rebuild(src.views[0])

        assert outcome.formatting_applied
        assert target_tasks.view_formatters[outcome.view_id] == '{"hideSelection":true}'

    def test_formatter_failure_is_a_warning(self, reconstructor, fake_client, log):
        fake_client.fail["patch_custom_formatting"] = {"view-2"}

        outcome = reconstructor.rebuild(ViewDescriptor("Styled", custom_formatter="{}"))

        assert outcome.ok
        assert outcome.view_id == "view-2"
        assert not outcome.formatting_applied
        assert any(m.startswith("Failed to apply view formatting") for m in log.messages("WARNING"))
