"""HTTP handlers for the gallery routes."""

from .gallery import GalleryHandlers

__all__ = ["GalleryHandlers"]
