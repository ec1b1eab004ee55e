"""Tests for ramjam.workflows.executor module."""
from __future__ import annotations

import datetime
import json
import time

import httpx
import pytest

from ramjam.workflows.errors import (
    CaptureError,
    ExpectationError,
    HeaderExpectationError,
    PathQueryError,
    RequestFailedError,
    ResponseParseError,
)
from ramjam.workflows.executor import StepExecutor
from ramjam.workflows.expressions import VariableStore
from ramjam.workflows.models import WorkflowStep
from ramjam.workflows.parser import WorkflowParser


def make_step(**data) -> WorkflowStep:
    data.setdefault("step", "step")
    data.setdefault("request", {"url": "/users"})
    step = WorkflowStep.model_validate(data)
    WorkflowParser().resolve_body(step, ".")
    return step


@pytest.fixture
def variables():
    return VariableStore(base_url="http://api.test")


@pytest.fixture
def lines():
    return []


@pytest.fixture
def execute(http_client, variables, lines):
    def inner(step: WorkflowStep, verbose: bool = False, **kwargs) -> None:
        StepExecutor(http_client, verbose=verbose, **kwargs).execute(step, variables, lines.append)

    return inner


class TestRequest:
    def test_url_is_joined_with_base_url(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200))
        execute(make_step(request={"url": "users"}))
        assert str(fake_api.requests[0].url) == "http://api.test/users"

    def test_base_url_trailing_slash(self, fake_api, execute, variables):
        variables["base_url"] = "http://api.test/"
        fake_api.route("GET", "/users", httpx.Response(200))
        execute(make_step(request={"url": "/users"}))
        assert str(fake_api.requests[0].url) == "http://api.test/users"

    def test_absolute_url_ignores_base_url(self, fake_api, execute):
        fake_api.route("GET", "/health", httpx.Response(200))
        execute(make_step(request={"url": "http://other.test/health"}))
        assert fake_api.requests[0].url.host == "other.test"

    def test_variables_in_url_and_headers(self, fake_api, execute, variables):
        variables["user_id"] = "123"
        fake_api.route("GET", "/users/123", httpx.Response(200))
        execute(make_step(request={"url": "/users/${user_id}", "headers": {"X-Request-ID": "req-${user_id}"}}))
        request = fake_api.requests[0]
        assert request.url.path == "/users/123"
        assert request.headers["X-Request-ID"] == "req-123"

    @pytest.mark.parametrize("method, expected", [(None, "GET"), ("", "GET"), ("  post ", "POST"), ("delete", "DELETE")])
    def test_method_normalization(self, fake_api, execute, method, expected):
        fake_api.route(expected, "/users", httpx.Response(204))
        execute(make_step(request={"url": "/users", "method": method}))
        assert fake_api.requests[0].method == expected

    def test_default_user_agent(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200))
        execute(make_step())
        assert fake_api.requests[0].headers["User-Agent"] == "ramjam-cli"

    def test_declared_headers_win(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200))
        execute(make_step(request={"url": "/users", "headers": {"user-agent": "custom"}}))
        assert fake_api.requests[0].headers.get_list("User-Agent") == ["custom"]

    def test_json_body_with_variables(self, fake_api, execute, variables):
        variables.update(user_id="123", role="admin")
        fake_api.route("POST", "/users", httpx.Response(201))
        execute(
            make_step(
                request={
                    "method": "POST",
                    "url": "/users",
                    "body": {"id": "${user_id}", "roles": ["${role}"], "age": 30},
                }
            )
        )
        request = fake_api.requests[0]
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {"id": "123", "roles": ["admin"], "age": 30}

    def test_no_body_no_content_type(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200))
        execute(make_step())
        assert "Content-Type" not in fake_api.requests[0].headers

    def test_params_are_merged_with_query_string(self, fake_api, execute, variables):
        variables["page"] = "2"
        fake_api.route("GET", "/search", httpx.Response(200))
        execute(make_step(request={"url": "/search?q=books", "params": {"page": "${page}"}}))
        params = fake_api.requests[0].url.params
        assert params["q"] == "books"
        assert params["page"] == "2"

    def test_timeout_fails_the_step(self, fake_api, execute):
        def timeout(request):
            raise httpx.ReadTimeout("timed out", request=request)

        fake_api.route("GET", "/users", timeout)
        with pytest.raises(RequestFailedError, match="^request failed: timed out"):
            execute(make_step())

    def test_transport_error_fails_the_step(self, fake_api, execute):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        fake_api.route("GET", "/users", refuse)
        with pytest.raises(RequestFailedError, match="connection refused"):
            execute(make_step())

    def test_yaml_dates_in_body_are_sent_as_iso_strings(self, fake_api, execute):
        fake_api.route("POST", "/users", httpx.Response(201))
        execute(
            make_step(
                request={
                    "method": "POST",
                    "url": "/users",
                    "body": {"birthday": datetime.date(1990, 5, 1), "tags": [datetime.date(2024, 1, 31)]},
                }
            )
        )
        assert json.loads(fake_api.requests[0].content) == {"birthday": "1990-05-01", "tags": ["2024-01-31"]}

    def test_unserializable_body_fails_the_step(self, mocker, fake_api, execute):
        mocker.patch("ramjam.workflows.executor.json.dumps", side_effect=TypeError("not serializable"))
        with pytest.raises(RequestFailedError, match="^marshal body: not serializable"):
            execute(make_step(request={"method": "POST", "url": "/users", "body": {"name": "x"}}))
        assert fake_api.requests == []

    def test_whole_exchange_is_bounded_by_timeout(self, fake_api, execute):
        def drip(request):
            def chunks():
                for _ in range(8):
                    time.sleep(0.2)
                    yield b" "

            return httpx.Response(200, content=chunks())

        fake_api.route("GET", "/users", drip)
        started = time.monotonic()
        with pytest.raises(RequestFailedError, match=r"^request failed: timeout of 0\.5s exceeded"):
            execute(make_step(), timeout=0.5)
        assert time.monotonic() - started < 1.2

    def test_response_within_timeout(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, json={"id": 1}))
        execute(make_step(expect={"json_path_match": [{"path": "id", "value": 1}]}), timeout=5.0)


class TestExpectations:
    def test_status_mismatch(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(500))
        with pytest.raises(ExpectationError) as exc:
            execute(make_step(expect={"status": 200}))
        assert "200" in str(exc.value)
        assert "500" in str(exc.value)

    def test_status_not_checked_when_absent(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(503))
        execute(make_step())

    def test_headers(self, fake_api, execute):
        fake_api.route(
            "GET",
            "/users",
            httpx.Response(200, headers={"Content-Type": "application/json; charset=utf-8", "X-Version": "3"}),
        )
        execute(
            make_step(
                expect={
                    "headers": [
                        {"name": "content-type", "contains": "application/json"},
                        {"name": " X-Version ", "value": 3},
                    ]
                }
            )
        )

    def test_header_value_mismatch(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, headers={"X-Version": "2"}))
        with pytest.raises(ExpectationError, match='expected header X-Version to equal "3", got "2"'):
            execute(make_step(expect={"headers": [{"name": "X-Version", "value": "3"}]}))

    def test_header_contains_mismatch(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, headers={"Content-Type": "text/plain"}))
        with pytest.raises(ExpectationError, match="expected header Content-Type to contain"):
            execute(make_step(expect={"headers": [{"name": "Content-Type", "contains": "json"}]}))

    def test_header_expectation_uses_variables(self, fake_api, execute, variables):
        variables["etag"] = "abc"
        fake_api.route("GET", "/users", httpx.Response(200, headers={"ETag": "abc"}))
        execute(make_step(expect={"headers": [{"name": "ETag", "value": "${etag}"}]}))

    @pytest.mark.parametrize(
        "expectation, message",
        [
            ({"name": "  ", "value": "x"}, "must specify a name"),
            ({"name": "X-Version"}, "must specify value or contains"),
            ({"name": "X-Version", "value": "3", "contains": "3"}, "must specify only one of value or contains"),
        ],
    )
    def test_malformed_header_expectation(self, fake_api, execute, expectation, message):
        fake_api.route("GET", "/users", httpx.Response(200))
        with pytest.raises(HeaderExpectationError, match=message):
            execute(make_step(expect={"headers": [expectation]}))

    def test_json_paths(self, fake_api, execute):
        fake_api.route("GET", "/data", httpx.Response(200, json={"user": {"name": "Alice", "age": 30, "admin": True}}))
        execute(
            make_step(
                request={"url": "/data"},
                expect={
                    "json_path_match": [
                        {"path": "user.name", "value": "Alice"},
                        {"path": "user.age", "value": "30"},
                        {"path": "$.user.age", "value": 30},
                        {"path": "user.admin", "value": True},
                    ]
                },
            )
        )

    def test_json_path_filter(self, fake_api, execute):
        fake_api.route("GET", "/list", httpx.Response(200, json=[{"id": 1, "title": "A"}, {"id": 2, "title": "B"}]))
        execute(make_step(request={"url": "/list"}, expect={"json_path_match": [{"path": "$[?(@.id==2)].title", "value": "B"}]}))

    def test_json_path_expected_value_uses_variables(self, fake_api, execute, variables):
        variables["name"] = "Alice"
        fake_api.route("GET", "/users", httpx.Response(200, json={"name": "Alice"}))
        execute(make_step(expect={"json_path_match": [{"path": "name", "value": "${name}"}]}))

    def test_json_path_mismatch(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, json={"name": "Bob"}))
        with pytest.raises(ExpectationError, match='jsonpath name expected "Alice", got "Bob"'):
            execute(make_step(expect={"json_path_match": [{"path": "name", "value": "Alice"}]}))

    def test_json_path_evaluation_error(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, json=[]))
        with pytest.raises(PathQueryError, match="index out of range"):
            execute(make_step(expect={"json_path_match": [{"path": "$[0].name", "value": "X"}]}))

    def test_empty_body_is_valid_without_queries(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(204))
        execute(make_step(expect={"status": 204}))

    def test_empty_body_fails_queries(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200))
        with pytest.raises(PathQueryError, match="response body is empty"):
            execute(make_step(expect={"json_path_match": [{"path": "$", "value": "x"}]}))

    def test_invalid_json_response(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, text="<html>"))
        with pytest.raises(ResponseParseError, match="^parse response json: "):
            execute(make_step())


class TestCaptures:
    def test_json_path_capture(self, fake_api, execute, variables):
        fake_api.route("GET", "/config", httpx.Response(200, json={"id": 123, "role": "admin"}))
        execute(
            make_step(
                request={"url": "/config"},
                capture=[{"json_path": "id", "as": "user_id"}, {"json_path": "$.role", "as": "user_role"}],
            )
        )
        assert variables["user_id"] == "123"
        assert variables["user_role"] == "admin"

    def test_header_capture_with_group(self, fake_api, execute, variables):
        fake_api.route("GET", "/users", httpx.Response(200, headers={"Authorization": "Bearer abc123"}))
        execute(make_step(capture=[{"header": "Authorization", "regex": "Bearer (.*)", "as": "token"}]))
        assert variables["token"] == "abc123"

    def test_header_capture_without_group(self, fake_api, execute, variables):
        fake_api.route("GET", "/users", httpx.Response(200, headers={"Cache-Control": "public, max-age=3600"}))
        execute(make_step(capture=[{"header": "Cache-Control", "regex": "max-age=[0-9]+", "as": "age"}]))
        assert variables["age"] == "max-age=3600"

    def test_header_capture_without_regex(self, fake_api, execute, variables):
        fake_api.route("GET", "/users", httpx.Response(200, headers={"X-Trace": "t-1"}))
        execute(make_step(capture=[{"header": "X-Trace", "as": "trace"}]))
        assert variables["trace"] == "t-1"

    def test_capture_is_visible_to_output(self, fake_api, execute, lines):
        fake_api.route("GET", "/users", httpx.Response(200, json={"id": 7}))
        execute(make_step(capture=[{"json_path": "id", "as": "user_id"}], output={"print": "User ${user_id} ${unknown}"}))
        assert lines == ["User 7 ${unknown}"]

    def test_invalid_regex(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, headers={"X-Trace": "t-1"}))
        with pytest.raises(CaptureError, match="invalid regex"):
            execute(make_step(capture=[{"header": "X-Trace", "regex": "(unclosed", "as": "trace"}]))

    def test_regex_without_match(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, headers={"X-Trace": "t-1"}))
        with pytest.raises(CaptureError, match="did not match header X-Trace"):
            execute(make_step(capture=[{"header": "X-Trace", "regex": "^z", "as": "trace"}]))

    def test_capture_without_source(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200))
        with pytest.raises(CaptureError, match="must specify json_path or header"):
            execute(make_step(capture=[{"as": "nothing"}]))

    def test_capture_with_both_sources(self, fake_api, execute):
        fake_api.route("GET", "/users", httpx.Response(200, json={"id": 1}, headers={"X-Trace": "t-1"}))
        with pytest.raises(CaptureError, match="only one of json_path or header"):
            execute(make_step(capture=[{"json_path": "id", "header": "X-Trace", "as": "both"}]))

    def test_json_path_capture_failure(self, fake_api, execute, variables):
        fake_api.route("GET", "/users", httpx.Response(200, json={"items": []}))
        with pytest.raises(CaptureError, match="capture json_path items\\[0\\]"):
            execute(make_step(capture=[{"json_path": "items[0]", "as": "first"}]))
        assert "first" not in variables

    def test_list_capture_is_stored_as_json(self, fake_api, execute, variables):
        fake_api.route("GET", "/users", httpx.Response(200, json=[{"id": 1, "tag": "x"}, {"id": 2, "tag": "x"}]))
        execute(make_step(capture=[{"json_path": "$[?(@.tag==x)]", "as": "tagged"}]))
        assert json.loads(variables["tagged"]) == [{"id": 1, "tag": "x"}, {"id": 2, "tag": "x"}]


def test_verbose_trace(fake_api, execute, lines, variables):
    fake_api.route("POST", "/users", httpx.Response(201, json={"id": 5}, headers={"X-Version": "3"}))
    execute(
        make_step(
            step="create",
            request={"method": "POST", "url": "/users", "body": {"name": "x"}},
            expect={"status": 201, "headers": [{"name": "X-Version", "value": "3"}], "json_path_match": [{"path": "id", "value": 5}]},
            capture=[{"json_path": "id", "as": "user_id"}],
            output={"print": "done ${user_id}"},
        ),
        verbose=True,
    )
    assert lines == [
        "Executing step: create",
        "Using body from: inline",
        "Received status: 201",
        "Asserting header X-Version == 3",
        "Asserting id == 5",
        "Captured user_id => 5",
        "done 5",
    ]


def test_custom_user_agent(fake_api, execute):
    fake_api.route("GET", "/users", httpx.Response(200))
    execute(make_step(), user_agent="suite/1.0")
    assert fake_api.requests[0].headers["User-Agent"] == "suite/1.0"
