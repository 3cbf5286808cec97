"""
Application Initialization
==========================
Builds the model, the main window and starts the Qt event loop.

Why is this file needed?
------------------------
It is the composition root. It:
1. Parses the few command line options (start image, logging).
2. Creates the single WarpState every view and controller shares.
3. Hands that state to the MainWindow, which wires the controllers.

Usage:
    $ pathwarp --image photo.jpg --log-level debug
"""
import argparse
import logging
import sys
from typing import List, Optional

from PySide6.QtWidgets import QApplication

from pathwarp.logging_config import setup_logging
from pathwarp.model.state import WarpState
from pathwarp.view.main_window import MainWindow, VISIBLE_APP_NAME

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pathwarp", description="Bend an image along a curved path.")
    parser.add_argument("--image", default=None, help="Path or http(s) URL of the start image.")
    parser.add_argument("--log-level", default="info", help="debug, info, warning or error.")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file.")
    # Qt consumes its own options (-style, -platform ...) from the rest
    args, _ = parser.parse_known_args(argv)
    return args


def build_state(image: Optional[str] = None) -> WarpState:
    state = WarpState()
    state.set_image_url(image)
    return state


def main() -> None:
    args = parse_args(sys.argv[1:])
    setup_logging(level=args.log_level, log_file=args.log_file)

    app = QApplication(sys.argv)
    app.setApplicationName(VISIBLE_APP_NAME)

    state = build_state(args.image)
    logger.info(f"Starting {VISIBLE_APP_NAME} (image: {state.image_url or 'placeholder'}).")

    window = MainWindow(state)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
