from typing import Optional

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QGroupBox, QFormLayout, QHBoxLayout, QLineEdit,
    QPushButton, QSpinBox, QDoubleSpinBox, QFileDialog, QLabel
)

from pathwarp.config import MIN_IMAGE_LENGTH_RATIO
from pathwarp.model.state import WarpState


IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.tif *.tiff)"


class WarpControlPanel(QWidget):
    """Left-hand panel: image source, warp parameters and export."""
    # Emitted with a path or URL when the user picks a new image
    image_requested = Signal(str)
    export_requested = Signal()

    def __init__(self, state: WarpState, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.state = state

        layout = QVBoxLayout(self)

        # --- 1. IMAGE ---
        grp_image = QGroupBox("Obrázek")
        image_layout = QVBoxLayout(grp_image)

        self.url_edit = QLineEdit()
        self.url_edit.setPlaceholderText("Cesta k souboru nebo URL (prázdné = šachovnice)")
        self.url_edit.returnPressed.connect(self.on_load_clicked)
        image_layout.addWidget(self.url_edit)

        row = QHBoxLayout()
        self.btn_browse = QPushButton("Procházet...")
        self.btn_browse.clicked.connect(self.on_browse_clicked)
        self.btn_load = QPushButton("Načíst")
        self.btn_load.clicked.connect(self.on_load_clicked)
        row.addWidget(self.btn_browse)
        row.addWidget(self.btn_load)
        image_layout.addLayout(row)

        self.lbl_image = QLabel("-")
        image_layout.addWidget(self.lbl_image)
        layout.addWidget(grp_image)

        # --- 2. WARP PARAMETERS ---
        grp_warp = QGroupBox("Deformace")
        form = QFormLayout(grp_warp)

        self.sb_resolution = QSpinBox()
        self.sb_resolution.setRange(1, 1000)

        self.sb_intensity = QDoubleSpinBox()
        self.sb_intensity.setRange(-10.0, 10.0)
        self.sb_intensity.setSingleStep(0.1)
        self.sb_intensity.setDecimals(2)

        self.sb_height = QDoubleSpinBox()
        self.sb_height.setRange(0.05, 10.0)
        self.sb_height.setSingleStep(0.05)
        self.sb_height.setDecimals(2)

        self.sb_offset = QDoubleSpinBox()
        self.sb_offset.setRange(0.0, 1.0)
        self.sb_offset.setSingleStep(0.01)
        self.sb_offset.setDecimals(3)

        self.sb_ratio = QDoubleSpinBox()
        self.sb_ratio.setRange(MIN_IMAGE_LENGTH_RATIO, 1.0)
        self.sb_ratio.setSingleStep(0.01)
        self.sb_ratio.setDecimals(3)

        form.addRow("Rozlišení:", self.sb_resolution)
        form.addRow("Intenzita:", self.sb_intensity)
        form.addRow("Výška:", self.sb_height)
        form.addRow("Posun po křivce:", self.sb_offset)
        form.addRow("Délka obrázku:", self.sb_ratio)
        layout.addWidget(grp_warp)

        # --- 3. EXPORT ---
        self.btn_export = QPushButton("Exportovat PNG")
        self.btn_export.clicked.connect(self.export_requested.emit)
        layout.addWidget(self.btn_export)

        layout.addStretch()

        self.load_from_state()

        self.sb_resolution.valueChanged.connect(self.on_resolution_changed)
        self.sb_intensity.valueChanged.connect(self.on_intensity_changed)
        self.sb_height.valueChanged.connect(self.on_height_changed)
        self.sb_offset.valueChanged.connect(self.on_offset_changed)
        self.sb_ratio.valueChanged.connect(self.on_ratio_changed)

    # --- STATE SYNC ---

    def load_from_state(self) -> None:
        """Push the current state into the widgets without re-emitting."""
        spin_boxes = [self.sb_resolution, self.sb_intensity, self.sb_height, self.sb_offset, self.sb_ratio]
        for sb in spin_boxes:
            sb.blockSignals(True)
        try:
            self.sb_resolution.setValue(self.state.resolution)
            self.sb_intensity.setValue(self.state.warp_intensity)
            self.sb_height.setValue(self.state.height_scale)
            self.sb_ratio.setValue(self.state.image_length_ratio)
            self.sb_offset.setMaximum(self.state.max_path_offset)
            self.sb_offset.setValue(self.state.path_offset)
        finally:
            for sb in spin_boxes:
                sb.blockSignals(False)
        self.url_edit.setText(self.state.image_url or "")

    def set_image_info(self, text: str) -> None:
        self.lbl_image.setText(text)

    # --- SLOTS ---

    def on_browse_clicked(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(self, "Otevřít obrázek", "", IMAGE_FILTER)
        if fname:
            self.url_edit.setText(fname)
            self.on_load_clicked()

    def on_load_clicked(self) -> None:
        # the state url follows once the load actually starts
        self.image_requested.emit(self.url_edit.text().strip())

    def on_resolution_changed(self, value: int) -> None:
        self.state.set_resolution(value)

    def on_intensity_changed(self, value: float) -> None:
        self.state.set_warp_intensity(value)

    def on_height_changed(self, value: float) -> None:
        self.state.set_height_scale(value)

    def on_offset_changed(self, value: float) -> None:
        self.state.set_path_offset(value)

    def on_ratio_changed(self, value: float) -> None:
        self.state.set_image_length_ratio(value)
        # the offset bound moved; reflect the re-clamped value
        self.load_from_state()
