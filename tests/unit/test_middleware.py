"""
Unit tests for the middleware pipeline, access log and error translation.
"""

import json
import logging

import pytest

from galleryserver.errors import (
    GalleryError,
    IOFailureError,
    NoBoundaryError,
    NotFoundError,
)
from galleryserver.http import HTTPRequest, HTTPStatus, ResponseBuilder
from galleryserver.middleware import (
    ErrorMiddleware,
    LoggingMiddleware,
    Middleware,
    MiddlewarePipeline,
)


def make_request(path: str = "/gallery") -> HTTPRequest:
    return HTTPRequest(
        method="GET",
        path=path,
        query_params={"name": ["a.png"]},
        client_address=("10.0.0.5", 50000),
        headers={"user-agent": "pytest"},
    )


def ok_handler(request):
    return ResponseBuilder().text("ok").build()


class Recorder(Middleware):
    def __init__(self, label, calls):
        self.label = label
        self.calls = calls

    def __call__(self, request, next):
        self.calls.append(f"{self.label}:in")
        response = next(request)
        self.calls.append(f"{self.label}:out")
        return response


class TestMiddlewarePipeline:

    def test_first_added_is_outermost(self):
        calls = []
        pipeline = MiddlewarePipeline().add(Recorder("a", calls)).add(Recorder("b", calls))

        pipeline.wrap(ok_handler)(make_request())

        assert calls == ["a:in", "b:in", "b:out", "a:out"]
        assert len(pipeline) == 2
        assert [m.name for m in pipeline] == ["Recorder", "Recorder"]

    def test_empty_pipeline_is_the_handler(self):
        handler = MiddlewarePipeline().wrap(ok_handler)
        assert handler(make_request()).body == b"ok"


class TestErrorMiddleware:

    @pytest.mark.parametrize("error, status", [
        (NotFoundError("gone"), HTTPStatus.NOT_FOUND),
        (NoBoundaryError("no boundary"), HTTPStatus.BAD_REQUEST),
        (IOFailureError("disk full"), HTTPStatus.INTERNAL_SERVER_ERROR),
        (GalleryError("odd", status_code=418), HTTPStatus.INTERNAL_SERVER_ERROR),
    ])
    def test_gallery_errors_become_responses(self, error, status):
        def failing(request):
            raise error

        response = MiddlewarePipeline().add(ErrorMiddleware()).wrap(failing)(make_request())

        assert response.status == status
        assert str(error).encode() in response.body

    def test_other_exceptions_propagate(self):
        def buggy(request):
            raise KeyError("bug")

        handler = MiddlewarePipeline().add(ErrorMiddleware()).wrap(buggy)
        with pytest.raises(KeyError):
            handler(make_request())


class TestLoggingMiddleware:

    def test_adds_request_id(self):
        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(ok_handler)
        response = handler(make_request())
        assert len(response.headers["X-Request-ID"]) == 8

    def test_request_id_optional(self):
        handler = MiddlewarePipeline().add(
            LoggingMiddleware(include_request_id=False)
        ).wrap(ok_handler)
        assert "X-Request-ID" not in handler(make_request()).headers

    def test_text_line(self, caplog):
        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(ok_handler)

        with caplog.at_level(logging.INFO, logger="galleryserver.access"):
            handler(make_request())

        [record] = [r for r in caplog.records if r.name == "galleryserver.access"]
        assert '10.0.0.5 - - [' in record.getMessage()
        assert '"GET /gallery?name=a.png" 200 2 ' in record.getMessage()

    def test_json_line(self, caplog):
        handler = MiddlewarePipeline().add(LoggingMiddleware(log_format="json")).wrap(ok_handler)

        with caplog.at_level(logging.INFO, logger="galleryserver.access"):
            response = handler(make_request())

        [record] = [r for r in caplog.records if r.name == "galleryserver.access"]
        entry = json.loads(record.getMessage())
        assert entry["request_id"] == response.headers["X-Request-ID"]
        assert entry["status_code"] == 200
        assert entry["client_ip"] == "10.0.0.5"
        assert entry["user_agent"] == "pytest"

    def test_server_errors_logged_as_warning(self, caplog):
        def failing(request):
            return ResponseBuilder().status(HTTPStatus.INTERNAL_SERVER_ERROR).build()

        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(failing)
        with caplog.at_level(logging.INFO, logger="galleryserver.access"):
            handler(make_request())

        assert caplog.records[-1].levelno == logging.WARNING

    def test_skip_paths(self, caplog):
        handler = MiddlewarePipeline().add(
            LoggingMiddleware(skip_paths=["/gallery"])
        ).wrap(ok_handler)

        with caplog.at_level(logging.INFO, logger="galleryserver.access"):
            handler(make_request())

        assert not [r for r in caplog.records if r.name == "galleryserver.access"]

    def test_exception_logged_and_reraised(self, caplog):
        def buggy(request):
            raise RuntimeError("boom")

        handler = MiddlewarePipeline().add(LoggingMiddleware()).wrap(buggy)
        with caplog.at_level(logging.INFO, logger="galleryserver.access"):
            with pytest.raises(RuntimeError):
                handler(make_request())

        assert "RuntimeError: boom" in caplog.records[-1].getMessage()
