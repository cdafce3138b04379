"""
Tests for loading background image bytes.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from healthmap.services.image_loader import ImageLoadError, load_image_bytes


def test_load_plain_path(tmp_path):
    path = tmp_path / "dog.png"
    path.write_bytes(b"data")

    assert load_image_bytes(str(path)) == b"data"


def test_load_file_url(tmp_path):
    path = tmp_path / "dog with spaces.png"
    path.write_bytes(b"data")

    assert load_image_bytes(path.as_uri()) == b"data"


def test_missing_file_raises(tmp_path):
    with pytest.raises(ImageLoadError):
        load_image_bytes(str(tmp_path / "nope.png"))


def test_empty_file_raises(tmp_path):
    path = tmp_path / "empty.png"
    path.write_bytes(b"")

    with pytest.raises(ImageLoadError):
        load_image_bytes(str(path))


@patch("healthmap.services.image_loader.requests.get")
def test_http_download(mock_get):
    response = MagicMock()
    response.content = b"remote"
    mock_get.return_value = response

    assert load_image_bytes("https://photos.example/dog.png", timeout=3) == b"remote"
    mock_get.assert_called_once_with("https://photos.example/dog.png", timeout=3)


@patch("healthmap.services.image_loader.requests.get")
def test_http_error_raises(mock_get):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
    mock_get.return_value = response

    with pytest.raises(ImageLoadError, match="404"):
        load_image_bytes("https://photos.example/missing.png")


@patch("healthmap.services.image_loader.requests.get")
def test_http_connection_error_raises(mock_get):
    mock_get.side_effect = requests.ConnectionError("unreachable")

    with pytest.raises(ImageLoadError):
        load_image_bytes("http://photos.example/dog.png")


@patch("healthmap.services.image_loader.requests.get")
def test_http_empty_body_raises(mock_get):
    response = MagicMock()
    response.content = b""
    mock_get.return_value = response

    with pytest.raises(ImageLoadError):
        load_image_bytes("https://photos.example/dog.png")
