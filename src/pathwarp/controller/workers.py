"""
Background Workers (Threading)
==============================
This module contains QThread subclasses for handling long-running tasks.

Why is this file needed?
------------------------
1. Responsiveness: Downloading and decoding a large image on the main thread
   would freeze the frame loop. The loader pushes that work to a background
   thread.
2. Signals: The "image ready" signal is what releases a deferred export, so
   it is delivered back to the GUI thread through a Qt Signal.

Classes:
    ImageLoaderWorker: Loads a SourceImage from a path or URL.
"""
import logging
from typing import Optional

from PySide6.QtCore import QThread, Signal

from pathwarp.model.image_source import load_source_image

logger = logging.getLogger(__name__)


class ImageLoaderWorker(QThread):
    # Signals to update the UI from the background
    loaded = Signal(object)  # SourceImage
    error_occurred = Signal(str)

    def __init__(self, url: Optional[str]) -> None:
        super().__init__()
        self.url = url

    def run(self) -> None:
        try:
            logger.info(f"Loading source image: {self.url or '<placeholder>'}")
            image = load_source_image(self.url)
            self.loaded.emit(image)
        except Exception as e:
            logger.error(f"Error in ImageLoaderWorker: {e}")
            self.error_occurred.emit(str(e))
