"""
Unit tests for the gallery request handlers, called through the
error-translating pipeline without any sockets.
"""

from pathlib import Path

import pytest

from galleryserver.gallery import ChangeNotifier, GalleryStore
from galleryserver.handlers import GalleryHandlers
from galleryserver.http import HTTPRequest, HTTPStatus, Router
from galleryserver.middleware import ErrorMiddleware, MiddlewarePipeline

from conftest import build_multipart


@pytest.fixture
def app(store: GalleryStore):
    router = Router()
    GalleryHandlers(store).register(router)
    return MiddlewarePipeline().add(ErrorMiddleware()).wrap(router.handle)


def upload_request(filename, payload: bytes, boundary: str = "BOUND123") -> HTTPRequest:
    body = build_multipart(filename, payload, boundary)
    return HTTPRequest(
        method="POST",
        path="/upload",
        headers={
            "content-type": f"multipart/form-data; boundary={boundary}",
            "content-length": str(len(body)),
        },
        body=body,
    )


class TestIndex:

    @pytest.mark.parametrize("path", ["/", "/gallery"])
    def test_empty_gallery(self, app, path):
        response = app(HTTPRequest(method="GET", path=path))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert b"No images yet." in response.body
        assert b'name="file"' in response.body
        assert "no-cache" in response.headers["Cache-Control"]

    def test_lists_images_escaped(self, app, store: GalleryStore):
        store.save("a b&c.png", b"x")
        store.save("<script>.png", b"x")

        body = app(HTTPRequest(method="GET", path="/gallery")).body.decode()

        assert 'src="/images/a%20b%26c.png"' in body
        assert 'action="/delete?name=a%20b%26c.png"' in body
        assert "<script>.png" not in body
        assert "&lt;script&gt;.png" in body


class TestServeImage:

    def test_serves_bytes(self, app, store: GalleryStore):
        store.save("a.png", b"\x89PNG\x00")

        response = app(HTTPRequest(method="GET", path="/images/a.png"))

        assert response.status == HTTPStatus.OK
        assert response.body == b"\x89PNG\x00"
        assert response.headers["Content-Type"] == "image/png"

    def test_jpeg_content_type(self, app, store: GalleryStore):
        store.save("b.jpg", b"\xff\xd8")
        response = app(HTTPRequest(method="GET", path="/images/b.jpg"))
        assert response.headers["Content-Type"] == "image/jpeg"

    def test_missing_image(self, app):
        response = app(HTTPRequest(method="GET", path="/images/ghost.png"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body.startswith(b"404 Not Found: ")


class TestUpload:

    def test_upload_success(self, app, store: GalleryStore, gallery_dir: Path):
        response = app(upload_request("a.png", b"0123456789"))

        assert response.status == HTTPStatus.FOUND
        assert response.headers["Location"] == "/gallery"
        assert b"/gallery" in response.body
        assert (gallery_dir / "a.png").read_bytes() == b"0123456789"

    def test_upload_sanitizes_name(self, app, gallery_dir: Path):
        app(upload_request("../../evil.png", b"x"))

        assert (gallery_dir / "evil.png").exists()
        assert not (gallery_dir.parent / "evil.png").exists()

    def test_upload_publishes_change(self, app, notifier: ChangeNotifier):
        with notifier.subscribe() as subscription:
            app(upload_request("a.png", b"x"))
            assert subscription.get(timeout=1.0) is not None

    def test_missing_boundary(self, app):
        request = HTTPRequest(
            method="POST",
            path="/upload",
            headers={"content-type": "multipart/form-data"},
            body=b"whatever",
        )
        response = app(request)
        assert response.status == HTTPStatus.BAD_REQUEST

    @pytest.mark.parametrize("filename, payload", [
        (None, b"data"),
        ("a.png", b""),
    ])
    def test_bad_uploads_store_nothing(self, app, store: GalleryStore, filename, payload):
        response = app(upload_request(filename, payload))

        assert response.status == HTTPStatus.BAD_REQUEST
        assert store.list() == []

    def test_control_character_filename_is_400(self, app, store: GalleryStore, gallery_dir: Path):
        body = (
            b"--BOUND123\r\n"
            b"Content-Disposition: form-data; name=\"file\"; filename*=UTF-8''a%00.png\r\n"
            b"\r\n"
            b"payload\r\n--BOUND123--\r\n"
        )
        request = HTTPRequest(
            method="POST",
            path="/upload",
            headers={"content-type": "multipart/form-data; boundary=BOUND123"},
            body=body,
        )

        response = app(request)

        assert response.status == HTTPStatus.BAD_REQUEST
        assert store.list() == []
        assert list(gallery_dir.iterdir()) == []

    def test_disk_failure_is_500_html(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_bytes(b"")
        router = Router()
        GalleryHandlers(GalleryStore(blocker)).register(router)

        response = router.handle(upload_request("a.png", b"x"))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.headers["Content-Type"].startswith("text/html")
        assert b"Upload failed" in response.body


class TestDelete:

    def test_delete_existing(self, app, store: GalleryStore):
        store.save("a.png", b"x")

        response = app(HTTPRequest(
            method="POST", path="/delete", query_params={"name": ["a.png"]},
        ))

        assert response.status == HTTPStatus.FOUND
        assert response.headers["Location"] == "/gallery"
        assert store.list() == []

    def test_delete_missing_still_redirects(self, app, notifier: ChangeNotifier):
        with notifier.subscribe() as subscription:
            response = app(HTTPRequest(
                method="POST", path="/delete", query_params={"name": ["ghost.png"]},
            ))
            assert subscription.get(timeout=0.1) is None

        assert response.status == HTTPStatus.FOUND

    def test_delete_without_name(self, app):
        response = app(HTTPRequest(method="POST", path="/delete"))
        assert response.status == HTTPStatus.FOUND

    def test_delete_disk_failure_is_500(self, app, store: GalleryStore, monkeypatch):
        store.save("a.png", b"x")

        def refuse(self, *args, **kwargs):
            raise PermissionError("read-only filesystem")

        monkeypatch.setattr(Path, "unlink", refuse)

        response = app(HTTPRequest(
            method="POST", path="/delete", query_params={"name": ["a.png"]},
        ))

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert store.list() == ["a.png"]
