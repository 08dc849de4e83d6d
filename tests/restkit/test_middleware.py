"""Tests for middleware stages and chains."""

import logging

import pytest

from RestKit import Client
from RestKit.errors import MiddlewareError, UnsupportedBodyTypeError
from RestKit.middleware import (
    FunctionMiddleware,
    Middleware,
    MiddlewareChain,
    as_middleware,
)
from RestKit.testing import ResponseSpec, use_mock_transport
from tests.fixtures.http_mocking import HOST


class Recorder(Middleware):
    name = "recorder"

    def __init__(self, seen, label):
        self.seen = seen
        self.label = label

    def apply(self, client, subject):
        self.seen.append(self.label)


class TestChain:
    """Ordering and error propagation."""

    def setup_method(self):
        self.client = Client()

    def test_stages_run_in_order(self):
        seen = []
        chain = MiddlewareChain(
            [Recorder(seen, "a"), lambda client, subject: seen.append("b"), Recorder(seen, "c")]
        )
        chain.run(self.client, object())
        assert seen == ["a", "b", "c"]
        assert len(chain) == 3

    def test_first_failure_stops_the_chain(self):
        seen = []

        def boom(client, subject):
            raise RuntimeError("Before request middleware error")

        chain = MiddlewareChain([boom, Recorder(seen, "after")])
        with pytest.raises(MiddlewareError) as excinfo:
            chain.run(self.client, object())
        assert seen == []
        assert excinfo.value.stage == "boom"
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert "Before request middleware error" in str(excinfo.value)

    def test_library_errors_pass_through(self):
        def reject(client, subject):
            raise UnsupportedBodyTypeError()

        with pytest.raises(UnsupportedBodyTypeError):
            MiddlewareChain([reject]).run(self.client, object())

    def test_as_middleware(self):
        stage = Recorder([], "x")
        assert as_middleware(stage) is stage
        wrapped = as_middleware(len)
        assert isinstance(wrapped, FunctionMiddleware)
        assert wrapped.name == "len"
        with pytest.raises(TypeError):
            as_middleware("not callable")


class TestClientHooks:
    """User middleware registered on a client."""

    def test_before_request_sees_assembled_request(self):
        client = Client()
        captured = {}

        def stamp(client, request):
            captured["url"] = request.url
            request.raw_request.headers["X-Stamp"] = "1"

        client.on_before_request(stamp)
        with use_mock_transport(client, ResponseSpec(body="ok")) as recorder:
            client.new_request().get(HOST + "/hooks")
        assert captured["url"] == HOST + "/hooks"
        assert recorder.requests[0].headers["x-stamp"] == "1"

    def test_user_stages_run_after_builtins(self):
        client = Client()
        order = []
        client.on_before_request(lambda c, r: order.append(r.raw_request is not None))
        client.on_after_response(lambda c, resp: order.append(resp.status_code))
        with use_mock_transport(client, ResponseSpec(status=204)):
            client.new_request().get(HOST + "/")
        assert order == [True, 204]

    def test_before_request_failure_aborts_send(self):
        client = Client()

        def stop(client, request):
            raise ValueError("stop")

        client.on_before_request(stop)
        with use_mock_transport(client, ResponseSpec()) as recorder:
            with pytest.raises(MiddlewareError):
                client.new_request().get(HOST + "/")
        assert recorder.requests == []

    def test_after_response_failure(self):
        client = Client()

        def fail(client, response):
            raise KeyError("After response middleware error")

        client.on_after_response(fail)
        with use_mock_transport(client, ResponseSpec()):
            with pytest.raises(MiddlewareError) as excinfo:
                client.new_request().get(HOST + "/")
        assert excinfo.value.stage == "fail"


class TestDebugLoggers:
    """Request and response log blocks."""

    def test_quiet_without_debug(self, caplog, restkit_log):
        client = Client(logger=restkit_log)
        with caplog.at_level(logging.DEBUG, logger=restkit_log.name):
            with use_mock_transport(client, ResponseSpec(body="ok")):
                client.new_request().get(HOST + "/")
        assert "REQUEST LOG" not in caplog.text

    def test_debug_blocks_mask_credentials(self, caplog, restkit_log):
        client = Client(logger=restkit_log).set_debug(True).set_auth_token("s3cr3t-token")
        with caplog.at_level(logging.INFO, logger=restkit_log.name):
            with use_mock_transport(
                client, ResponseSpec(body={"ok": True}, headers={"Content-Type": "application/json"})
            ):
                client.new_request().set_header("Content-Type", "application/json").post(
                    HOST + "/login"
                )
        assert "REQUEST LOG" in caplog.text
        assert "RESPONSE LOG" in caplog.text
        assert "STATUS : 200 OK" in caplog.text
        assert "***masked***" in caplog.text
        assert "s3cr3t-token" not in caplog.text

        request_record = next(r for r in caplog.records if "REQUEST LOG" in r.getMessage())
        assert request_record.extra_fields["method"] == "POST"
        assert request_record.extra_fields["url"] == HOST + "/login"
        assert request_record.stage == "request_logger"

    def test_response_body_is_pretty_printed(self, caplog, restkit_log):
        client = Client(logger=restkit_log).set_debug()
        with caplog.at_level(logging.INFO, logger=restkit_log.name):
            with use_mock_transport(
                client, ResponseSpec(body={"a": 1}, headers={"Content-Type": "application/json"})
            ):
                client.new_request().get(HOST + "/")
        assert '{\n   "a": 1\n}' in caplog.text
