"""
Source Image Loading
Resolves an image URL (local path or http/https) into a PyVista texture
with known pixel dimensions.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import tempfile
import uuid
from typing import Optional
from urllib.parse import urlparse

import httpx
import numpy as np
import pyvista as pv

from pathwarp.config import DOWNLOAD_TIMEOUT_S, PLACEHOLDER_SIZE, PLACEHOLDER_TILES
from pathwarp.model.errors import ImageLoadError

logger = logging.getLogger(__name__)


@dataclass
class SourceImage:
    """A fully decoded source image."""
    url: Optional[str]
    texture: pv.Texture
    width: int
    height: int

    @property
    def is_placeholder(self) -> bool:
        return self.url is None


def placeholder_image(size: int = PLACEHOLDER_SIZE, tiles: int = PLACEHOLDER_TILES) -> SourceImage:
    """Grey checkerboard shown while no image URL is set."""
    cell = max(1, size // tiles)
    idx = np.arange(size) // cell
    checker = (idx[:, None] + idx[None, :]) % 2
    pixels = np.where(checker[..., None] == 0, 200, 120).astype(np.uint8)
    pixels = np.repeat(pixels, 3, axis=2)
    return SourceImage(url=None, texture=pv.Texture(pixels), width=size, height=size)


def _is_remote(url: str) -> bool:
    return urlparse(url).scheme in ("http", "https")


def _download(url: str, timeout: float = DOWNLOAD_TIMEOUT_S) -> str:
    """Fetch a remote image into a temporary file. The caller removes it."""
    logger.info(f"Downloading image: {url}")
    try:
        response = httpx.get(url, timeout=httpx.Timeout(timeout), follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise ImageLoadError(f"Download failed ({e.response.status_code}): {url}") from e
    except httpx.RequestError as e:
        raise ImageLoadError(f"Download failed: {url} ({e})") from e

    suffix = os.path.splitext(urlparse(url).path)[1] or ".jpg"
    temp_path = os.path.join(tempfile.gettempdir(), f"pathwarp_{uuid.uuid4().hex}{suffix}")
    with open(temp_path, "wb") as f:
        f.write(response.content)
    return temp_path


def load_source_image(url: Optional[str]) -> SourceImage:
    """
    Decode the image at `url`.

    Args:
        url: Local file path or http(s) URL. None or "" selects the placeholder.

    Raises:
        ImageLoadError: If the file cannot be fetched or decoded.
    """
    if not url:
        return placeholder_image()

    temp_path: Optional[str] = None
    try:
        path = url
        if _is_remote(url):
            temp_path = _download(url)
            path = temp_path
        elif not os.path.exists(path):
            raise ImageLoadError(f"Image not found: {url}")

        image = pv.read(path)
        if not isinstance(image, pv.ImageData):
            raise ImageLoadError(f"Not a raster image: {url}")

        width, height = int(image.dimensions[0]), int(image.dimensions[1])
        if width < 1 or height < 1:
            raise ImageLoadError(f"Image has no pixels: {url}")

        logger.info(f"Loaded image {url} ({width} x {height} px).")
        return SourceImage(url=url, texture=pv.Texture(image), width=width, height=height)

    except ImageLoadError:
        raise
    except Exception as e:
        raise ImageLoadError(f"Could not load image '{url}': {e}") from e
    finally:
        if temp_path and os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e:
                logger.warning(f"Could not delete temp file '{temp_path}': {e}")
