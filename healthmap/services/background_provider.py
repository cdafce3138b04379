"""
Background Provider Module.

Holds the health map's current background: the default silhouette or a
photo. Background choice is local session state and never touches markers.
"""

import logging
from typing import Optional

from PySide6.QtCore import QObject, Signal

from healthmap.core.background import Background, UsePhotoAsBackground

logger = logging.getLogger(__name__)


class BackgroundProvider(QObject):
    """
    Supplies the silhouette or a user photo as the map background.

    Signals:
        background_changed: Emitted with the new Background on a real change.
    """

    background_changed = Signal(object)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._current = Background.silhouette()

    def current(self) -> Background:
        """Returns the active background."""
        return self._current

    def set_photo(self, url: str) -> None:
        """
        Shows a photo behind the markers.

        Args:
            url: Location of the photo (http(s), file URL or local path).

        Raises:
            ValueError: If url is empty.
        """
        if not url or not url.strip():
            raise ValueError("Photo background requires a URL")
        self._set(Background.photo(url.strip()))

    def clear_photo(self) -> None:
        """Reverts to the silhouette."""
        self._set(Background.silhouette())

    def handle(self, command: UsePhotoAsBackground) -> None:
        """
        Consumes a request from the photo strip to use a stored photo.

        Args:
            command: The typed request.
        """
        logger.debug(f"Using photo {command.photo_id} as health map background")
        self.set_photo(command.url)

    def _set(self, background: Background) -> None:
        if background == self._current:
            return
        self._current = background
        logger.info(f"Health map background -> {background.kind.value}")
        self.background_changed.emit(background)
