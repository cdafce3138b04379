"""
Unit tests for the BackgroundProvider.
"""

import pytest

from healthmap.core.background import Background, BackgroundKind, UsePhotoAsBackground
from healthmap.services.background_provider import BackgroundProvider


@pytest.fixture
def provider(qapp):
    return BackgroundProvider()


def test_defaults_to_silhouette(provider):
    assert provider.current() == Background.silhouette()
    assert provider.current().url is None


def test_set_photo_switches_and_emits(qtbot, provider):
    with qtbot.waitSignal(provider.background_changed) as blocker:
        provider.set_photo(" https://photos.example/dog.jpg ")

    assert blocker.args[0] == Background.photo("https://photos.example/dog.jpg")
    assert provider.current().kind is BackgroundKind.PHOTO


def test_same_photo_does_not_emit(qtbot, provider):
    provider.set_photo("https://photos.example/dog.jpg")

    with qtbot.assertNotEmitted(provider.background_changed):
        provider.set_photo("https://photos.example/dog.jpg")


def test_clear_photo_reverts(qtbot, provider):
    provider.set_photo("file:///tmp/dog.png")

    with qtbot.waitSignal(provider.background_changed):
        provider.clear_photo()

    assert provider.current() == Background.silhouette()


@pytest.mark.parametrize("url", ["", "   "])
def test_empty_url_rejected(provider, url):
    with pytest.raises(ValueError):
        provider.set_photo(url)
    assert provider.current() == Background.silhouette()


def test_handle_use_photo_command(provider):
    provider.handle(UsePhotoAsBackground("photo-7", "https://photos.example/7.png"))

    assert provider.current() == Background.photo("https://photos.example/7.png")


def test_switching_background_never_touches_markers(provider, store):
    store.place(0.3, 0.6, "Lump")
    before = store.list()

    provider.set_photo("https://photos.example/dog.jpg")
    provider.clear_photo()

    assert store.list() == before
