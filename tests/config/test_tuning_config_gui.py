import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt5.QtWidgets")

from eye_detection.config.tuning_config import TuningConfig, save_config_section
from eye_detection.config.tuning_config_gui import TuningConfigDialog
from eye_detection.helpers.thread_safe_config import ThreadSafeConfig

RES = (200, 100)


@pytest.fixture(scope="module")
def qapp():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


@pytest.fixture
def holder():
    return ThreadSafeConfig(TuningConfig.for_resolution(*RES))


def test_widgets_show_current_values(qapp, holder, tmp_path):
    dlg = TuningConfigDialog(holder, RES, toml_path=tmp_path / "t.toml")
    assert dlg.inputs["low_threshold"].value() == 60.0
    assert dlg.inputs["eye_pos_x"].value() == 100
    assert dlg.inputs["eye_pos_y"].value() == 50
    # loading the widgets does not write back
    assert holder.get() == TuningConfig.for_resolution(*RES)


def test_changes_are_written_through(qapp, holder, tmp_path):
    seen = []
    dlg = TuningConfigDialog(holder, RES, toml_path=tmp_path / "t.toml", on_apply=seen.append)

    dlg.inputs["high_threshold"].setValue(150.0)
    assert holder.get().high_threshold == 150.0

    dlg.inputs["eye_pos_x"].setValue(42)
    assert holder.get().eye_pos == (42, 50)
    assert seen[-1].eye_pos == (42, 50)


def test_reload_and_defaults(qapp, holder, tmp_path):
    path = tmp_path / "t.toml"
    save_config_section(path, "tuning", ThreadSafeConfig(TuningConfig(low_threshold=33.0, eye_pos=(7, 8))))

    dlg = TuningConfigDialog(holder, RES, toml_path=path)
    dlg.reload()
    assert holder.get().low_threshold == 33.0
    assert dlg.inputs["eye_pos_x"].value() == 7

    dlg.reset_defaults()
    assert holder.get().low_threshold == 60.0
    assert holder.get().eye_pos == (100, 50)


if __name__ == "__main__":
    pytest.main([__file__])
