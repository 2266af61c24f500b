"""
Unit tests for URL router.
"""

import pytest

from galleryserver.gallery import GalleryStore
from galleryserver.handlers import GalleryHandlers
from galleryserver.http.router import Router
from galleryserver.http.request import HTTPRequest
from galleryserver.http.response import HTTPResponse, ResponseBuilder, HTTPStatus


def make_request(method: str, path: str) -> HTTPRequest:
    """Helper to create a request for testing."""
    return HTTPRequest(method=method, path=path)


def dummy_handler(request: HTTPRequest) -> HTTPResponse:
    """Dummy handler for testing."""
    return ResponseBuilder().text(request.path).build()


class TestRouter:
    """Tests for Router class."""

    def test_add_route(self):
        """Test adding routes."""
        router = Router()
        router.add_route("/gallery", dummy_handler, method="get")

        routes = router.routes()
        assert len(routes) == 1
        assert routes[0].path == "/gallery"
        assert routes[0].method == "GET"
        assert routes[0].name == "dummy_handler"

    def test_match_root(self):
        router = Router()
        router.add_route("/", dummy_handler, method="GET")

        assert router.match("GET", "/") is not None
        assert router.match("GET", "/gallery") is None

    def test_match_static_path(self):
        """Test matching static paths."""
        router = Router()
        router.add_route("/upload", dummy_handler, method="POST")
        router.add_route("/delete", dummy_handler, method="POST")

        match = router.match("POST", "/upload")
        assert match is not None
        assert match.route.path == "/upload"

        match = router.match("POST", "/delete")
        assert match is not None
        assert match.route.path == "/delete"

    def test_trailing_slash_ignored(self):
        router = Router()
        router.add_route("/gallery", dummy_handler, method="GET")
        assert router.match("GET", "/gallery/") is not None

    def test_match_dynamic_params(self):
        """Test dynamic path parameters."""
        router = Router()
        router.add_route("/images/:name", dummy_handler, method="GET")

        match = router.match("GET", "/images/cat.png")
        assert match is not None
        assert match.params == {"name": "cat.png"}

        assert router.match("GET", "/images/a/b.png") is None
        assert router.match("GET", "/images/") is None

    def test_match_wildcard(self):
        """Test wildcard path matching."""
        router = Router()
        router.add_route("/files/*path", dummy_handler, method="GET")

        match = router.match("GET", "/files/2026/10/a.png")
        assert match is not None
        assert match.params == {"path": "2026/10/a.png"}

    def test_any_method_route(self):
        router = Router()
        router.add_route("/ping", dummy_handler)
        assert router.match("PUT", "/ping") is not None

    def test_first_registered_wins(self):
        router = Router()
        first = router.add_route("/images/:name", dummy_handler, method="GET")
        router.add_route("/images/special.png", dummy_handler, method="GET")

        assert router.match("GET", "/images/special.png").route is first

    def test_no_match(self):
        """Test when no route matches."""
        router = Router()
        router.add_route("/upload", dummy_handler, method="POST")

        assert router.match("GET", "/posts") is None
        assert router.match("GET", "/upload") is None  # Wrong method
        assert router.match("post", "/upload") is None  # methods are case-sensitive

    def test_handle_success(self):
        """Test handling a request successfully."""
        router = Router()

        @router.get("/hello")
        def hello(request):
            return ResponseBuilder().text("Hello!").build()

        response = router.handle(make_request("GET", "/hello"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"Hello!"

    @pytest.mark.parametrize("method, path", [
        ("GET", "/missing"),
        ("GET", "/upload"),
        ("DELETE", "/images/a.png"),
        ("PATCH", "/gallery"),
    ])
    def test_handle_not_found(self, method, path):
        """Unknown paths and wrong methods both answer 404."""
        router = Router()
        router.add_route("/upload", dummy_handler, method="POST")
        router.add_route("/images/:name", dummy_handler, method="GET")
        router.add_route("/gallery", dummy_handler, method="GET")

        response = router.handle(make_request(method, path))

        assert response.status == HTTPStatus.NOT_FOUND
        assert "Allow" not in response.headers

    def test_path_params_in_request(self):
        """Test that path params are injected into request."""
        router = Router()
        captured_params = {}

        @router.get("/images/:name")
        def serve(request):
            captured_params.update(request.path_params)
            return ResponseBuilder().text("ok").build()

        router.handle(make_request("GET", "/images/42.png"))

        assert captured_params == {"name": "42.png"}


class TestRouterDecorators:
    """Tests for decorator-style route registration."""

    def test_get_decorator(self):
        """Test @router.get decorator."""
        router = Router()

        @router.get("/test")
        def test_handler(request):
            return ResponseBuilder().text("test").build()

        assert router.routes()[0].method == "GET"
        assert test_handler.__name__ == "test_handler"

    def test_post_decorator(self):
        """Test @router.post decorator."""
        router = Router()

        @router.post("/test", name="posted")
        def test_handler(request):
            return ResponseBuilder().text("test").build()

        assert router.routes()[0].method == "POST"
        assert router.routes()[0].name == "posted"


class TestGalleryRouteTable:
    """The routes GalleryHandlers registers."""

    @pytest.fixture
    def router(self, store: GalleryStore) -> Router:
        router = Router()
        GalleryHandlers(store).register(router)
        return router

    @pytest.mark.parametrize("method, path, name", [
        ("GET", "/", "index"),
        ("GET", "/gallery", "gallery"),
        ("GET", "/images/a.png", "image"),
        ("POST", "/upload", "upload"),
        ("POST", "/delete", "delete"),
    ])
    def test_routes(self, router: Router, method, path, name):
        match = router.match(method, path)
        assert match is not None
        assert match.route.name == name

    def test_upload_is_post_only(self, router: Router):
        assert router.match("GET", "/upload") is None
