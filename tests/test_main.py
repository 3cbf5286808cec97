import unittest

from pathwarp.main import build_state, parse_args


class CommandLineTest(unittest.TestCase):

    def test_defaults(self):
        args = parse_args([])
        self.assertIsNone(args.image)
        self.assertEqual("info", args.log_level)
        self.assertIsNone(args.log_file)

    def test_options(self):
        args = parse_args(["--image", "photo.jpg", "--log-level", "debug"])
        self.assertEqual("photo.jpg", args.image)
        self.assertEqual("debug", args.log_level)

    def test_build_state(self):
        self.assertEqual("photo.jpg", build_state("photo.jpg").image_url)
        self.assertIsNone(build_state(None).image_url)


if __name__ == '__main__':
    unittest.main()
