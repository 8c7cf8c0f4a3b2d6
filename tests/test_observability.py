"""Tests for log formatting and request/operation context."""

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from outreach.observability import (
    CorrelationIdMiddleware,
    HumanFormatter,
    JSONFormatter,
    RequestContext,
    get_operation,
    get_request_id,
)


def make_record(msg: str = "Renumbered 3 companies", **extra) -> logging.LogRecord:
    record = logging.LogRecord("outreach.operations.gaps", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ============================================================
# Context
# ============================================================


class TestRequestContext:
    def test_sets_and_resets(self):
        assert get_request_id() is None
        with RequestContext(request_id="req-1", operation="repair_gaps"):
            assert get_request_id() == "req-1"
            assert get_operation() == "repair_gaps"
        assert get_request_id() is None
        assert get_operation() is None

    def test_nested_operation_keeps_request_id(self):
        with RequestContext(request_id="req-outer"):
            with RequestContext(operation="merge_companies") as inner:
                assert inner.request_id == "req-outer"
                assert get_operation() == "merge_companies"
            assert get_operation() is None

    def test_generated_id(self):
        with RequestContext() as ctx:
            assert ctx.request_id.startswith("req-")


# ============================================================
# Formatters
# ============================================================


class TestFormatters:
    def test_json_includes_context_and_extra(self):
        with RequestContext(request_id="req-abc", operation="repair_gaps"):
            line = JSONFormatter().format(make_record(changes=3))
        payload = json.loads(line)
        assert payload["level"] == "INFO"
        assert payload["logger"] == "outreach.operations.gaps"
        assert payload["message"] == "Renumbered 3 companies"
        assert payload["request_id"] == "req-abc"
        assert payload["operation"] == "repair_gaps"
        assert payload["changes"] == 3

    def test_json_without_context(self):
        payload = json.loads(JSONFormatter().format(make_record()))
        assert "request_id" not in payload
        assert "operation" not in payload

    def test_human_format(self):
        with RequestContext(request_id="req-abc", operation="reconcile"):
            line = HumanFormatter().format(make_record())
        assert "[INFO] outreach.operations.gaps: [req-abc] (reconcile) Renumbered 3 companies" in line


# ============================================================
# Middleware
# ============================================================


class TestCorrelationIdMiddleware:
    def make_app(self):
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/whoami")
        async def whoami():
            return {"request_id": get_request_id()}

        return TestClient(app)

    def test_header_propagated(self):
        resp = self.make_app().get("/whoami", headers={"X-Request-ID": "req-from-client"})
        assert resp.json()["request_id"] == "req-from-client"

    def test_generated_when_absent(self):
        assert self.make_app().get("/whoami").json()["request_id"].startswith("req-")
