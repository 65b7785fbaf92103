import numpy as np

from PyQt5 import QtCore, QtGui, QtWidgets

from eye_detection.config.tuning_config_gui import TuningConfigDialog
from eye_detection.frame_loop import FrameLoop, FrameResult
from eye_detection.helpers.image_helpers import render_overlay
from eye_detection.logging_utils.logging_setup import get_logger
from eye_detection.streamer.base_stream import StreamHandle

log = get_logger(__name__)

TICK_INTERVAL_MS = 5


class EyeDetectionViewer(QtWidgets.QMainWindow):
    """
    Main window. A QTimer drives FrameLoop.tick(); the result is drawn with
    render_overlay() and shown in a QLabel.

    Keys: D toggles the edge/contour debug view, T shows the tuning dialog, Esc quits.
    """

    def __init__(self, frame_loop: FrameLoop, stream_handle: StreamHandle,
                 resolution: tuple[int, int], tuning_dialog: TuningConfigDialog | None = None,
                 parent=None):
        super().__init__(parent)
        self.setWindowTitle("Eye Detection")
        self.resize(*resolution)

        self.frame_loop = frame_loop
        self.stream_handle = stream_handle
        self.tuning_dialog = tuning_dialog
        self.debug_view = False
        self._shown_index = -1

        # QLabel to show the rendered image
        self.label = QtWidgets.QLabel("Waiting for frames...", self)
        self.label.setAlignment(QtCore.Qt.AlignCenter)
        self.label.setMinimumSize(1, 1)
        self.setCentralWidget(self.label)

        self.timer = QtCore.QTimer(self)
        self.timer.timeout.connect(self._on_tick)
        self.timer.start(TICK_INTERVAL_MS)

    # ------------------------------------------------------------------ #
    # Frame loop
    # ------------------------------------------------------------------ #
    def _on_tick(self):
        result = self.frame_loop.tick(debug_view=self.debug_view)
        if result is None or result.frame_index == self._shown_index:
            # nothing new; the label keeps the previous pixmap
            return
        self._shown_index = result.frame_index
        self._show(result)

    def _show(self, result: FrameResult):
        frame = render_overlay(result.image, result.candidates, result.fps)
        frame = np.ascontiguousarray(frame)

        # frame is (H, W, 4) uint8, RGBA
        h, w, ch = frame.shape
        qimg = QtGui.QImage(frame.data, w, h, ch * w, QtGui.QImage.Format_RGBA8888)

        pixmap = QtGui.QPixmap.fromImage(qimg.copy())
        pixmap = pixmap.scaled(
            self.label.size(),
            QtCore.Qt.KeepAspectRatio,
            QtCore.Qt.SmoothTransformation,
        )
        self.label.setPixmap(pixmap)

    # ------------------------------------------------------------------ #
    # Input / teardown
    # ------------------------------------------------------------------ #
    def keyPressEvent(self, event: QtGui.QKeyEvent):
        key = event.key()
        if key == QtCore.Qt.Key_D:
            self.debug_view = not self.debug_view
            log.info(f"Debug view {'on' if self.debug_view else 'off'}")
            # redraw now, the stream may have stopped
            result = self.frame_loop.refresh(debug_view=self.debug_view)
            if result is not None:
                self._show(result)
        elif key == QtCore.Qt.Key_T and self.tuning_dialog is not None:
            self.tuning_dialog.show()
            self.tuning_dialog.raise_()
        elif key == QtCore.Qt.Key_Escape:
            self.close()
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event: QtGui.QCloseEvent):
        self.timer.stop()
        self.stream_handle.stop()
        if self.tuning_dialog is not None:
            self.tuning_dialog.close()
        log.info("Viewer closed")
        event.accept()
