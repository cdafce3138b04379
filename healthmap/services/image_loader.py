"""
Image Loader Module.

Fetches encoded image bytes for a background photo from a URL or path.
"""

import logging
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests

from healthmap.app.constants import IMAGE_FETCH_TIMEOUT

logger = logging.getLogger(__name__)


class ImageLoadError(Exception):
    """Raised when an image cannot be fetched."""


def load_image_bytes(url: str, timeout: float = IMAGE_FETCH_TIMEOUT) -> bytes:
    """
    Loads raw image bytes.

    Args:
        url: ``http(s)://`` URL, ``file://`` URL or plain filesystem path.
        timeout: Network timeout in seconds.

    Returns:
        bytes: The encoded image.

    Raises:
        ImageLoadError: If the image cannot be fetched or is empty.
    """
    parsed = urlparse(url)

    if parsed.scheme in ("http", "https"):
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to download image {url}: {e}")
            raise ImageLoadError(f"Failed to download image: {e}") from e
        data = response.content
    else:
        if parsed.scheme == "file":
            path = Path(url2pathname(parsed.path))
        else:
            path = Path(url)
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error(f"Failed to read image {path}: {e}")
            raise ImageLoadError(f"Failed to read image: {e}") from e

    if not data:
        raise ImageLoadError(f"Image is empty: {url}")
    return data
