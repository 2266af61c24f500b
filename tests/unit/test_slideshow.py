"""
Unit tests for the slideshow playlist.
"""

import time

from galleryserver.gallery import ChangeNotifier, GalleryStore, Slideshow


class TestSlideshow:

    def test_empty_gallery(self, store: GalleryStore):
        show = Slideshow(store)

        assert not show.has_images
        assert show.current() is None
        assert show.advance() is None

    def test_only_displayable_images(self, store: GalleryStore):
        for name in ("a.png", "b.JPG", "c.jpeg", "d.bmp", "e.gif", "notes.txt"):
            store.save(name, b"x")

        show = Slideshow(store)

        assert sorted(show.images) == ["a.png", "b.JPG", "c.jpeg", "d.bmp"]

    def test_rotation_wraps(self, store: GalleryStore):
        store.save("a.png", b"x")
        store.save("b.png", b"x")
        show = Slideshow(store)

        first = show.current()
        second = show.advance()
        assert second != first
        assert show.advance() == first

    def test_reload_resets_to_first_image(self, store: GalleryStore):
        store.save("a.png", b"x")
        store.save("b.png", b"x")
        show = Slideshow(store)
        show.advance()

        show.reload()

        assert show.current() == show.images[0]

    def test_is_displayable(self):
        assert Slideshow.is_displayable("photo.JPEG")
        assert not Slideshow.is_displayable("anim.gif")


class TestSlideshowAttach:
    """The playlist follows gallery changes on its own thread."""

    def wait_for(self, condition, timeout: float = 3.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if condition():
                return True
            time.sleep(0.02)
        return condition()

    def test_reloads_after_upload_and_delete(self, store: GalleryStore, notifier: ChangeNotifier):
        show = Slideshow(store)
        show.attach(notifier)
        try:
            store.save("new.png", b"x")
            assert self.wait_for(lambda: show.images == ["new.png"])

            store.delete("new.png")
            assert self.wait_for(lambda: not show.has_images)
        finally:
            show.detach()

        assert notifier.subscriber_count == 0

    def test_attach_twice_is_one_listener(self, store: GalleryStore, notifier: ChangeNotifier):
        show = Slideshow(store)
        show.attach(notifier)
        show.attach(notifier)
        try:
            assert notifier.subscriber_count == 1
        finally:
            show.detach()
        show.detach()
