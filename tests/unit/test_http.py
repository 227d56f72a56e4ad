"""Unit tests for the SharePoint REST client."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from spclone.core.auth import StaticTokenProvider
from spclone.core.http import NotFound, SharePointClient, SharePointError
from spclone.core.logbuffer import MigrationLog

API = "https://contoso.sharepoint.com/sites/A/_api/web"


def make_response(status=200, payload=None, text=None, headers=None):
    resp = requests.Response()
    resp.status_code = status
    if payload is not None:
        resp._content = json.dumps(payload).encode("utf-8")
    else:
        resp._content = (text or "").encode("utf-8")
    resp.headers.update(headers or {})
    resp.encoding = "utf-8"
    return resp


@pytest.fixture()
def session():
    return MagicMock(name="session")


@pytest.fixture()
def client(session):
    return SharePointClient(StaticTokenProvider("tok"), session=session)


class TestRequest:
    def test_sets_bearer_and_verbose_headers(self, client, session):
        session.request.return_value = make_response(payload={"d": {"Title": "A"}})

        client.get_json(API)

        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer tok"
        assert headers["Accept"] == "application/json;odata=verbose"
        assert "Content-Type" not in headers

    def test_content_type_only_with_body(self, client, session):
        session.request.return_value = make_response(status=201, payload={"d": {"Id": 1}})

        client.post_json(API + "/lists", json={"Title": "A"})

        headers = session.request.call_args.kwargs["headers"]
        assert headers["Content-Type"] == "application/json;odata=verbose"

    def test_404_raises_not_found(self, client, session):
        session.request.return_value = make_response(status=404, text="List does not exist")

        with pytest.raises(NotFound) as ei:
            client.get_json(API + "/lists/GetByTitle('X')")

        assert ei.value.status == 404
        assert ei.value.text == "List does not exist"

    def test_error_carries_status_and_body(self, client, session):
        session.request.return_value = make_response(status=400, text="bad field")

        with pytest.raises(SharePointError) as ei:
            client.post_json(API + "/lists", json={})

        assert ei.value.status == 400
        assert ei.value.method == "POST"
        assert "bad field" in str(ei.value)

    def test_long_body_is_truncated(self, client, session):
        session.request.return_value = make_response(status=500, text="x" * 2000)

        with pytest.raises(SharePointError) as ei:
            client.get_json(API)

        assert len(ei.value.text) < 600

    def test_network_error_becomes_sharepoint_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("boom")

        with pytest.raises(SharePointError) as ei:
            client.get_json(API)

        assert ei.value.status is None
        assert "ConnectionError" in ei.value.text

    def test_token_failure_becomes_sharepoint_error(self, session):
        tokens = MagicMock()
        tokens.get_access_token.side_effect = RuntimeError("Token acquisition failed: invalid_grant")
        sc = SharePointClient(tokens, session=session)

        with pytest.raises(SharePointError) as ei:
            sc.get_json(API)

        assert ei.value.status is None
        assert "invalid_grant" in ei.value.text
        session.request.assert_not_called()

    def test_no_retry_by_default(self, client, session):
        session.request.return_value = make_response(status=503, text="busy")

        with pytest.raises(SharePointError):
            client.get_json(API)

        assert session.request.call_count == 1

    def test_retry_when_configured(self, session):
        sc = SharePointClient(StaticTokenProvider("tok"), session=session, max_retries=1)
        session.request.side_effect = [
            make_response(status=429, text="slow down", headers={"Retry-After": "0"}),
            make_response(payload={"d": {"ok": True}}),
        ]

        with patch("spclone.core.http.time.sleep") as sleep:
            assert sc.get_json(API) == {"ok": True}

        assert session.request.call_count == 2
        sleep.assert_called_once_with(0.0)

    def test_failures_are_logged(self, session):
        log = MigrationLog(echo=False)
        sc = SharePointClient(StaticTokenProvider("tok"), session=session, log=log)
        session.request.side_effect = requests.Timeout("slow")

        with pytest.raises(SharePointError):
            sc.get_json(API)

        assert log.count("ERROR") == 1


class TestHelpers:
    def test_post_json_empty_body(self, client, session):
        session.request.return_value = make_response(status=204)

        assert client.post_json(API + "/x") == {}

    def test_merge_sets_method_headers(self, client, session):
        session.request.return_value = make_response(status=204)

        client.merge(API + "/lists/GetByTitle('A')/views('v1')", json={"CustomFormatter": "{}"})

        kwargs = session.request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["headers"]["X-HTTP-Method"] == "MERGE"
        assert kwargs["headers"]["IF-MATCH"] == "*"

    def test_invalid_json_raises(self, client, session):
        session.request.return_value = make_response(text="<html/>")

        with pytest.raises(SharePointError):
            client.get_json(API)

    def test_get_results_follows_next(self, client, session):
        session.request.side_effect = [
            make_response(payload={"d": {"results": [{"Id": 1}], "__next": API + "/lists?$skiptoken=2"}}),
            make_response(payload={"d": {"results": [{"Id": 2}]}}),
        ]

        rows = list(client.get_results(API + "/lists", params={"$top": "1"}))

        assert rows == [{"Id": 1}, {"Id": 2}]
        second = session.request.call_args_list[1].kwargs
        assert second["url"] == API + "/lists?$skiptoken=2"
        assert second["params"] is None
