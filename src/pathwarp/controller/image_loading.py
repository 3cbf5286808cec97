"""
Image Load Bookkeeping
======================
Tracks which source image is active, which one is loading and which one the
user asked for last, independent of Qt threads.

Why is this file needed?
------------------------
1. The active image only changes when a load succeeds. A failed load keeps
   the previous image (and exports keep working with it).
2. Only one loader runs at a time. A request made while one is running is
   queued (the newest request wins) and started when the current load ends.
3. `state.image_url` names the image being loaded or shown, never a request
   that was only queued.
"""
from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from pathwarp.model.image_source import SourceImage
    from pathwarp.model.state import WarpState

logger = logging.getLogger(__name__)

_NOTHING_QUEUED = object()


class ImageLoadQueue:
    def __init__(self, state: WarpState) -> None:
        self.state = state
        self.image: Optional[SourceImage] = None
        self.is_loading: bool = False
        # url being loaded, or of the active image
        self.current_url: Optional[str] = None
        self._queued: object = _NOTHING_QUEUED

    @property
    def has_queued(self) -> bool:
        return self._queued is not _NOTHING_QUEUED

    @property
    def export_image(self) -> Optional[SourceImage]:
        """The image an export may use now; None defers the export."""
        return None if self.is_loading else self.image

    def request(self, url: Optional[str]) -> bool:
        """
        Ask for a new image.

        Returns:
            True if the caller must start a loader for `url` now, False if
            the request was queued behind the running load.
        """
        if self.is_loading:
            logger.info(f"Image load queued: {url or '<placeholder>'}")
            self._queued = url
            return False
        self._start(url)
        return True

    def loaded(self, image: SourceImage) -> None:
        self.image = image
        self.is_loading = False

    def failed(self) -> None:
        """The running load failed; the previous image stays active."""
        self.is_loading = False
        self.current_url = self.image.url if self.image is not None else None
        self.sync_url()

    def sync_url(self) -> None:
        """Write the loading or active url back to the state (e.g. after a reset)."""
        self.state.set_image_url(self.current_url)

    def take_queued(self) -> tuple[bool, Optional[str]]:
        """
        Start the queued request, if any.

        Returns:
            (True, url) when a loader must be started for `url`.
        """
        if self.is_loading or not self.has_queued:
            return False, None
        url = self._queued
        self._queued = _NOTHING_QUEUED
        self._start(url)
        return True, url

    def _start(self, url: Optional[str]) -> None:
        self.is_loading = True
        self.current_url = url or None
        self.sync_url()
