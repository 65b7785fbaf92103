# tuning_config_gui.py

from __future__ import annotations

from pathlib import Path

from PyQt5.QtWidgets import (
    QDialog,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QGroupBox,
    QApplication,
    QMessageBox,
    QSpinBox,
    QDoubleSpinBox,
)

from eye_detection.config.tuning_config import (
    TuningConfig,
    TUNING_TOML_PATH,
    load_tuning_config,
    save_config_section,
)
from eye_detection.helpers.thread_safe_config import ThreadSafeConfig
from eye_detection.logging_utils.logging_setup import get_logger

log = get_logger(__name__)


class TuningConfigDialog(QDialog):
    def __init__(
        self,
        cfg_holder: ThreadSafeConfig,
        resolution: tuple[int, int],
        toml_path: Path = TUNING_TOML_PATH,
        on_apply=None,
        parent=None,
    ):
        """
        cfg_holder:
            ThreadSafeConfig[TuningConfig] shared with the frame loop. Every widget
            change is written through immediately (one update() per change).

        on_apply:
            Optional callback taking the new TuningConfig snapshot.
        """
        super().__init__(parent)
        self.setWindowTitle("Eye Detection Tuning")

        self.cfg_holder: ThreadSafeConfig = cfg_holder
        self.resolution = resolution
        self.toml_path = Path(toml_path)
        self.on_apply = on_apply

        self.inputs: dict[str, object] = {}
        self._loading = False

        layout = QVBoxLayout()
        layout.addWidget(self._group_edges(self.inputs))
        layout.addWidget(self._group_eye(self.inputs))
        layout.addLayout(self._buttons())
        self.setLayout(layout)

        self._load()

    # ------------------------------------------------------------------ #
    # UI construction
    # ------------------------------------------------------------------ #

    def _add_row(self, v: QVBoxLayout, label: str, widget):
        h = QHBoxLayout()
        h.addWidget(QLabel(label))
        h.addWidget(widget, 1)
        v.addLayout(h)

    def _double_box(self, lo: float, hi: float, step: float) -> QDoubleSpinBox:
        box = QDoubleSpinBox()
        box.setRange(lo, hi)
        box.setSingleStep(step)
        box.setDecimals(1)
        box.valueChanged.connect(self.apply)
        return box

    def _int_box(self, lo: int, hi: int) -> QSpinBox:
        box = QSpinBox()
        box.setRange(lo, hi)
        box.valueChanged.connect(self.apply)
        return box

    def _group_edges(self, inputs: dict) -> QGroupBox:
        g = QGroupBox("Edges && contours")
        v = QVBoxLayout()

        inputs["low_threshold"] = self._double_box(0.0, 2000.0, 5.0)
        self._add_row(v, "Low threshold", inputs["low_threshold"])

        inputs["high_threshold"] = self._double_box(0.0, 2000.0, 5.0)
        self._add_row(v, "High threshold", inputs["high_threshold"])

        inputs["size_filter"] = self._int_box(0, 10_000)
        self._add_row(v, "Min contour size (px)", inputs["size_filter"])

        g.setLayout(v)
        return g

    def _group_eye(self, inputs: dict) -> QGroupBox:
        g = QGroupBox("Eye window")
        v = QVBoxLayout()
        width, height = self.resolution
        short_side = min(width, height)

        inputs["eye_pos_x"] = self._int_box(0, width - 1)
        self._add_row(v, "Eye x", inputs["eye_pos_x"])

        inputs["eye_pos_y"] = self._int_box(0, height - 1)
        self._add_row(v, "Eye y", inputs["eye_pos_y"])

        inputs["eye_pos_threshold"] = self._int_box(0, max(width, height))
        self._add_row(v, "Position tolerance (px)", inputs["eye_pos_threshold"])

        inputs["eye_min_radius"] = self._double_box(0.0, float(short_side), 1.0)
        self._add_row(v, "Min radius (px)", inputs["eye_min_radius"])

        inputs["eye_max_radius"] = self._double_box(0.0, float(short_side), 1.0)
        self._add_row(v, "Max radius (px)", inputs["eye_max_radius"])

        g.setLayout(v)
        return g

    def _buttons(self) -> QHBoxLayout:
        h = QHBoxLayout()

        reset_btn = QPushButton("Defaults")
        reset_btn.clicked.connect(self.reset_defaults)

        reload_btn = QPushButton("Reload")
        reload_btn.clicked.connect(self.reload)

        save_btn = QPushButton("Save")
        save_btn.clicked.connect(self.save)

        close_btn = QPushButton("Close")
        close_btn.clicked.connect(self.close)

        h.addStretch()
        h.addWidget(reset_btn)
        h.addWidget(reload_btn)
        h.addWidget(save_btn)
        h.addWidget(close_btn)
        return h

    # ------------------------------------------------------------------ #
    # Data <-> UI
    # ------------------------------------------------------------------ #

    def _set_fields(self, cfg: TuningConfig):
        self._loading = True
        try:
            self.inputs["low_threshold"].setValue(float(cfg.low_threshold))
            self.inputs["high_threshold"].setValue(float(cfg.high_threshold))
            self.inputs["size_filter"].setValue(int(cfg.size_filter))
            self.inputs["eye_pos_x"].setValue(int(cfg.eye_pos[0]))
            self.inputs["eye_pos_y"].setValue(int(cfg.eye_pos[1]))
            self.inputs["eye_pos_threshold"].setValue(int(cfg.eye_pos_threshold))
            self.inputs["eye_min_radius"].setValue(float(cfg.eye_min_radius))
            self.inputs["eye_max_radius"].setValue(float(cfg.eye_max_radius))
        finally:
            self._loading = False

    def _collect(self) -> dict:
        return {
            "low_threshold": float(self.inputs["low_threshold"].value()),
            "high_threshold": float(self.inputs["high_threshold"].value()),
            "size_filter": int(self.inputs["size_filter"].value()),
            "eye_pos": (int(self.inputs["eye_pos_x"].value()), int(self.inputs["eye_pos_y"].value())),
            "eye_pos_threshold": int(self.inputs["eye_pos_threshold"].value()),
            "eye_min_radius": float(self.inputs["eye_min_radius"].value()),
            "eye_max_radius": float(self.inputs["eye_max_radius"].value()),
        }

    def _load(self):
        """Load current config from the ThreadSafeConfig into the widgets."""
        self._set_fields(self.cfg_holder.get())

    # ------------------------------------------------------------------ #
    # Actions
    # ------------------------------------------------------------------ #

    def apply(self, *_):
        """Write all widget values to the shared config in one locked update."""
        if self._loading:
            return
        self.cfg_holder.update(**self._collect())
        if self.on_apply:
            self.on_apply(self.cfg_holder.get())

    def reset_defaults(self):
        self.cfg_holder.replace(TuningConfig.for_resolution(*self.resolution))
        self._load()
        self.apply()

    def reload(self):
        self.cfg_holder.replace(load_tuning_config(self.toml_path, self.resolution))
        self._load()
        self.apply()

    def save(self):
        try:
            self.apply()
            save_config_section(self.toml_path, "tuning", self.cfg_holder)
            QMessageBox.information(self, "Saved", f"Saved to {self.toml_path.name}.")
        except OSError as e:
            log.error(f"Saving tuning failed: {e}")
            QMessageBox.critical(self, "Save Error", f"Failed to save:\n{e}")


if __name__ == "__main__":
    import sys

    res = (640, 480)
    holder = ThreadSafeConfig(load_tuning_config(TUNING_TOML_PATH, res))
    app = QApplication(sys.argv)
    dlg = TuningConfigDialog(cfg_holder=holder, resolution=res)
    dlg.show()
    sys.exit(app.exec_())
