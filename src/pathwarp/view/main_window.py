"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the control panel and the
warp viewport.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects global actions (Open image, Export) to the image
   loader worker and to the high-resolution exporter.
"""
import logging
import os
from typing import Optional, Set

from PySide6.QtWidgets import (
    QMainWindow, QSplitter, QFileDialog, QMessageBox
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QCloseEvent

from pathwarp.config import LOADER_SHUTDOWN_WAIT_MS
from pathwarp.controller.exporter import HighResExporter
from pathwarp.controller.image_loading import ImageLoadQueue
from pathwarp.controller.workers import ImageLoaderWorker
from pathwarp.model.image_source import SourceImage
from pathwarp.model.state import WarpState
from pathwarp.view.tabs.tab_warp import WarpControlPanel, IMAGE_FILTER
from pathwarp.view.widgets.warp_viewport import WarpViewport

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Ohýbání obrázku"


class MainWindow(QMainWindow):
    def __init__(self, state: WarpState) -> None:
        super().__init__()
        self.state: WarpState = state
        self._loads = ImageLoadQueue(state)
        self._workers: Set[ImageLoaderWorker] = set()

        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1400, 900)

        # --- SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Horizontal)
        self.setCentralWidget(splitter)

        # --- LEFT SIDE: Control Panel ---
        self.panel = WarpControlPanel(self.state)
        splitter.addWidget(self.panel)

        # --- RIGHT SIDE: Viewport ---
        self.viewport = WarpViewport(self.state)
        splitter.addWidget(self.viewport)

        # Set initial proportions (1 part sidebar : 4 parts viewport)
        splitter.setSizes([350, 1050])

        self.exporter = HighResExporter(
            self.state,
            sink=self._save_export,
            on_error=self._on_export_error,
        )

        # --- SIGNAL CONNECTIONS ---
        self.panel.image_requested.connect(self.load_image)
        self.panel.export_requested.connect(self.on_export_requested)
        self.viewport.state_changed.connect(self.panel.load_from_state)
        self.viewport.frame_ticked.connect(self._poll_export)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        self.load_image(self.state.image_url)

    def _create_actions(self) -> None:
        self.act_open = QAction("Otevřít obrázek...", self)
        self.act_open.setShortcut("Ctrl+O")
        self.act_open.triggered.connect(self.on_file_open)

        self.act_export = QAction("Exportovat PNG", self)
        self.act_export.setShortcut("Ctrl+E")
        self.act_export.triggered.connect(self.on_export_requested)

        self.act_reset = QAction("Obnovit výchozí", self)
        self.act_reset.triggered.connect(self.on_reset)

        self.act_exit = QAction("Ukončit", self)
        self.act_exit.triggered.connect(self.close)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&Soubor")
        file_menu.addAction(self.act_open)
        file_menu.addAction(self.act_export)
        file_menu.addSeparator()
        file_menu.addAction(self.act_reset)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

    # --- IMAGE LOADING ---

    def load_image(self, url: Optional[str]) -> None:
        """Load a source image in the background (queued if one is loading)."""
        if self._loads.request(url):
            self._start_loader(url)
        else:
            self.statusBar().showMessage("Obrázek je ve frontě, čekám na dokončení načítání...")

    def _start_loader(self, url: Optional[str]) -> None:
        self.statusBar().showMessage("Načítám obrázek...")
        self.panel.load_from_state()

        worker = ImageLoaderWorker(url)
        worker.loaded.connect(self.on_image_loaded)
        worker.error_occurred.connect(self.on_image_error)
        # keep a reference until the thread has really ended
        worker.finished.connect(lambda w=worker: self._workers.discard(w))
        self._workers.add(worker)
        worker.start()

    def _start_queued(self) -> None:
        started, url = self._loads.take_queued()
        if started:
            self._start_loader(url)

    def on_image_loaded(self, image: SourceImage) -> None:
        self._loads.loaded(image)
        self.viewport.set_image(image)
        name = "šachovnice" if image.is_placeholder else os.path.basename(image.url)
        self.panel.set_image_info(f"{name} ({image.width} x {image.height} px)")
        self.statusBar().showMessage("Obrázek načten.", 3000)
        self._start_queued()
        # a deferred export can run now
        self._poll_export()

    def on_image_error(self, message: str) -> None:
        self._loads.failed()
        self.panel.load_from_state()
        self._start_queued()
        self.statusBar().showMessage(f"Chyba: {message}", 5000)
        QMessageBox.warning(self, "Chyba", f"Nepodařilo se načíst obrázek:\n{message}")
        # the previous image is still active
        self._poll_export()

    # --- EXPORT ---

    def on_export_requested(self) -> None:
        self.state.trigger_export()
        if self._loads.export_image is None:
            self.statusBar().showMessage("Export čeká na načtení obrázku...")

    def _poll_export(self) -> None:
        try:
            self.exporter.poll(self._loads.export_image)
        except Exception as e:
            logger.error(f"Export failed: {e}")
            QMessageBox.critical(self, "Chyba", f"Export se nezdařil:\n{e}")

    def _save_export(self, filename: str, png: bytes) -> None:
        fname, _ = QFileDialog.getSaveFileName(self, "Uložit export", filename, "PNG (*.png)")
        if not fname:
            logger.info("Export discarded by the user.")
            return
        if not fname.lower().endswith(".png"):
            fname += ".png"
        with open(fname, "wb") as f:
            f.write(png)
        logger.info(f"Export saved to: {fname}")
        self.statusBar().showMessage(f"Uloženo: {fname}", 5000)

    def _on_export_error(self, message: str) -> None:
        QMessageBox.warning(self, "Export", message)

    # --- FILE SLOTS ---

    def on_file_open(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(self, "Otevřít obrázek", "", IMAGE_FILTER)
        if fname:
            self.load_image(fname)

    def on_reset(self) -> None:
        self.state.reset()
        # the image on screen (or loading) is unchanged until the reload
        self._loads.sync_url()
        self.panel.load_from_state()
        self.viewport.redraw_path()
        self.viewport.reset_view()
        self.load_image(None)

    @property
    def image(self) -> Optional[SourceImage]:
        """The active source image (unchanged while a new one loads)."""
        return self._loads.image

    def closeEvent(self, event: QCloseEvent) -> None:
        for worker in list(self._workers):
            if not worker.wait(LOADER_SHUTDOWN_WAIT_MS):
                logger.warning("Image loader still running at shutdown.")
        self.viewport.close()
        event.accept()
