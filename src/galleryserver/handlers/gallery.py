"""
=============================================================================
GALLERY ROUTE HANDLERS
=============================================================================

    GET  /, /gallery      page with upload form and one card per image
    GET  /images/:name    raw image bytes                 404 if missing
    POST /upload          multipart file → store          302 /gallery
    POST /delete?name=    remove image (missing is fine)  302 /gallery

Errors are raised as GalleryError subclasses and turned into responses
by ErrorMiddleware:

    UploadError     → 400     (bad boundary, body, filename, empty file)
    NotFoundError   → 404
    IOFailureError  → 500

The upload failure page is the one exception: a browser that posted the
form gets an HTML page with a link back instead of a bare status line.
=============================================================================
"""

import logging

from ..errors import IOFailureError
from ..gallery.pages import render_gallery, render_upload_failure, render_upload_success
from ..gallery.store import GalleryStore
from ..http.multipart import parse_upload
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.router import Router
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

GALLERY_PATH = "/gallery"


class GalleryHandlers:
    """
    Request handlers bound to one GalleryStore.

    Usage:
        handlers = GalleryHandlers(store)
        handlers.register(router)
    """

    def __init__(self, store: GalleryStore):
        self.store = store

    def register(self, router: Router) -> None:
        router.add_route("/", self.index, method="GET", name="index")
        router.add_route(GALLERY_PATH, self.index, method="GET", name="gallery")
        router.add_route("/images/:name", self.serve_image, method="GET", name="image")
        router.add_route("/upload", self.upload, method="POST", name="upload")
        router.add_route("/delete", self.delete, method="POST", name="delete")

    def index(self, request: HTTPRequest) -> HTTPResponse:
        return (ResponseBuilder()
            .html(render_gallery(self.store.list()))
            .no_cache()
            .build())

    def serve_image(self, request: HTTPRequest) -> HTTPResponse:
        name = request.path_params.get("name", "")
        data = self.store.read(name)
        return ResponseBuilder().image(data, name).build()

    def upload(self, request: HTTPRequest) -> HTTPResponse:
        upload = parse_upload(request.get_header("content-type"), request.body)

        try:
            stored_as = self.store.save(upload.filename, upload.payload)
        except IOFailureError as e:
            logger.error(f"Upload of {upload.filename!r} failed: {e}")
            return (ResponseBuilder()
                .status(HTTPStatus.INTERNAL_SERVER_ERROR)
                .html(render_upload_failure(str(e)))
                .build())

        logger.debug(f"Upload {upload.filename!r} stored as {stored_as}")
        return (ResponseBuilder()
            .redirect(GALLERY_PATH)
            .html(render_upload_success())
            .build())

    def delete(self, request: HTTPRequest) -> HTTPResponse:
        name = request.get_query("name", "") or ""
        if not self.store.delete(name):
            logger.debug(f"Delete of {name!r}: nothing to remove")
        return ResponseBuilder().redirect(GALLERY_PATH).build()
