import os
import tempfile
import unittest
from unittest import mock

import httpx
import numpy as np

from pathwarp.controller.exporter import encode_png
from pathwarp.model.errors import ImageLoadError
from pathwarp.model.image_source import load_source_image, placeholder_image


class ImageSourceTest(unittest.TestCase):

    def test_placeholder(self):
        image = placeholder_image(16, 4)
        self.assertTrue(image.is_placeholder)
        self.assertEqual((16, 16), (image.width, image.height))
        self.assertIsNotNone(image.texture)

    def test_empty_url_gives_placeholder(self):
        self.assertTrue(load_source_image(None).is_placeholder)
        self.assertTrue(load_source_image("").is_placeholder)

    def test_missing_file(self):
        self.assertRaises(ImageLoadError, load_source_image, "/nonexistent/path/image.png")

    def test_local_png(self):
        pixels = np.full((6, 10, 3), 128, dtype=np.uint8)
        fd, path = tempfile.mkstemp(suffix=".png")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(encode_png(pixels))
            image = load_source_image(path)
            self.assertFalse(image.is_placeholder)
            self.assertEqual((10, 6), (image.width, image.height))
        finally:
            os.remove(path)


class DownloadTest(unittest.TestCase):

    url = "https://example.com/images/photo.png"

    def response(self, status, content=b""):
        return httpx.Response(status, content=content, request=httpx.Request("GET", self.url))

    def test_remote_png(self):
        png = encode_png(np.full((4, 12, 3), 64, dtype=np.uint8))
        with mock.patch("pathwarp.model.image_source.httpx.get", return_value=self.response(200, png)) as get, \
                mock.patch("pathwarp.model.image_source.os.remove", wraps=os.remove) as remove:
            image = load_source_image(self.url)
        self.assertEqual((12, 4), (image.width, image.height))
        self.assertEqual(self.url, image.url)
        # bounded wait, redirects followed
        kwargs = get.call_args.kwargs
        self.assertIsNotNone(kwargs["timeout"])
        self.assertTrue(kwargs["follow_redirects"])
        # the temporary download is removed again
        self.assertEqual(1, remove.call_count)
        self.assertFalse(os.path.exists(remove.call_args.args[0]))

    def test_http_error(self):
        with mock.patch("pathwarp.model.image_source.httpx.get", return_value=self.response(404)):
            self.assertRaises(ImageLoadError, load_source_image, self.url)

    def test_stalled_server(self):
        with mock.patch("pathwarp.model.image_source.httpx.get", side_effect=httpx.ReadTimeout("timed out")):
            self.assertRaises(ImageLoadError, load_source_image, self.url)


if __name__ == '__main__':
    unittest.main()
