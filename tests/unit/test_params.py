"""Unit tests for job parameter coercion and resolution."""

import json
from pathlib import Path

import pytest

from spclone.params.resolve import load_param_json, resolve_jobs
from spclone.params.schema import (
    coerce_bool,
    coerce_float,
    coerce_int,
    coerce_path,
    coerce_str,
    default_migration_job_schema,
)

SRC = "https://contoso.sharepoint.com/sites/A"
DST = "https://contoso.sharepoint.com/sites/B"


class TestCoercion:
    @pytest.mark.parametrize("raw,expected", [("yes", True), ("0", False), (True, True), ("maybe", None)])
    def test_coerce_bool(self, raw, expected):
        assert coerce_bool(raw) is expected

    def test_coerce_int(self):
        assert coerce_int("5") == 5
        assert coerce_int("x", 3) == 3
        assert coerce_int(True) is None

    def test_coerce_float(self):
        assert coerce_float("2.5") == 2.5
        assert coerce_float("", 1.0) == 1.0

    def test_coerce_str(self):
        assert coerce_str("  a ") == "a"
        assert coerce_str("   ") is None

    def test_coerce_path(self):
        assert coerce_path("logs") == Path("logs")
        assert coerce_path("") is None


class TestSchema:
    def test_aliases_and_defaults(self):
        clean, errors = default_migration_job_schema().coerce_and_validate(
            {"source": SRC, "target_url": DST, "list": "Tasks"}
        )
        assert errors == []
        assert clean["SOURCE_URL"] == SRC
        assert clean["LIST_TITLE"] == "Tasks"
        assert clean["CopyViews"] is True
        assert clean["LogFormat"] is None

    def test_alias_case_and_path_kind(self):
        clean, errors = default_migration_job_schema().coerce_and_validate(
            {"SOURCE": SRC, "Target": DST, "LIST": " Tasks ", "Log_Dir": "logs", "copy_items": "no", "extra": 1}
        )
        assert errors == []
        assert clean["LIST_TITLE"] == "Tasks"
        assert clean["LogDir"] == Path("logs")
        assert clean["CopyItems"] is False
        assert "extra" not in clean

    def test_missing_required(self):
        _, errors = default_migration_job_schema().coerce_and_validate({"SOURCE_URL": SRC})
        assert "Missing required parameter: TARGET_URL" in errors
        assert "Missing required parameter: LIST_TITLE" in errors

    def test_invalid_choice(self):
        _, errors = default_migration_job_schema().coerce_and_validate(
            {"SOURCE_URL": SRC, "TARGET_URL": DST, "LIST_TITLE": "T", "LogFormat": "xml"}
        )
        assert any("LogFormat" in e for e in errors)


class TestResolveJobs:
    def test_one_job_per_list_title(self):
        jobs, info = resolve_jobs(cli={"SOURCE_URL": SRC, "TARGET_URL": DST}, list_titles=["Tasks", "Issues"])
        assert [j["LIST_TITLE"] for j in jobs] == ["Tasks", "Issues"]
        assert info.jobs_count == 2

    def test_priority_cli_over_job_over_defaults(self, tmp_path):
        path = tmp_path / "jobs.json"
        path.write_text(json.dumps({
            "defaults": {"SOURCE_URL": SRC, "TARGET_URL": DST, "CopyItems": False},
            "jobs": [{"LIST_TITLE": "Tasks", "CopyViews": False}, {"LIST_TITLE": "Issues", "CopyItems": True}],
        }))

        jobs, info = resolve_jobs(
            cli={"CopyViews": None, "LogFormat": "json"},
            config_block={"CopyViews": True},
            param_json_path=path,
        )

        assert info.json_path == str(path)
        assert jobs[0]["CopyViews"] is False
        assert jobs[0]["CopyItems"] is False
        assert jobs[1]["CopyItems"] is True
        assert all(j["LogFormat"] == "json" for j in jobs)

    def test_invalid_jobs_are_reported(self):
        jobs, info = resolve_jobs(cli={"SOURCE_URL": SRC})
        assert jobs == []
        assert info.errors

    def test_load_param_json_requires_jobs(self, tmp_path):
        path = tmp_path / "jobs.json"
        path.write_text(json.dumps({"defaults": {}}))
        with pytest.raises(ValueError):
            load_param_json(path)

    def test_load_param_json_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_param_json(tmp_path / "nope.json")
