import threading

import pytest

from eye_detection.config.tuning_config import (
    TuningConfig,
    TUNING_TOML_PATH,
    load_tuning_config,
    save_config_section,
)
from eye_detection.helpers.thread_safe_config import ThreadSafeConfig


def test_defaults_follow_resolution():
    cfg = TuningConfig.for_resolution(640, 480)
    assert cfg.low_threshold == 60.0
    assert cfg.high_threshold == 120.0
    assert cfg.size_filter == 0
    assert cfg.eye_pos == (320, 240)
    assert cfg.eye_pos_threshold == 96
    assert cfg.eye_min_radius == pytest.approx(480 / 7)
    assert cfg.eye_max_radius == pytest.approx(96.0)


def test_get_returns_a_snapshot():
    holder = ThreadSafeConfig(TuningConfig())
    snap = holder.get()
    snap.low_threshold = 1.0
    assert holder.get().low_threshold == 60.0

    holder.set("low_threshold", 5.0)
    assert snap.low_threshold == 1.0
    assert holder.get_field("low_threshold") == 5.0
    assert holder.asdict()["low_threshold"] == 5.0


def test_unknown_field_is_rejected():
    holder = ThreadSafeConfig(TuningConfig())
    with pytest.raises(AttributeError):
        holder.update(low_threshold=1.0, not_a_field=3)
    assert holder.get().low_threshold == 60.0


def test_radius_pair_is_never_torn():
    holder = ThreadSafeConfig(TuningConfig(eye_min_radius=10.0, eye_max_radius=20.0))
    stop = threading.Event()

    def writer():
        i = 0
        while not stop.is_set():
            lo = float(i % 50)
            holder.update(eye_min_radius=lo, eye_max_radius=lo + 10.0)
            i += 1

    t = threading.Thread(target=writer)
    t.start()
    try:
        for _ in range(2000):
            snap = holder.get()
            assert snap.eye_max_radius - snap.eye_min_radius == 10.0
    finally:
        stop.set()
        t.join()


def test_toml_round_trip(tmp_path):
    path = tmp_path / "tuning.toml"
    holder = ThreadSafeConfig(TuningConfig(low_threshold=25.0, size_filter=12, eye_pos=(10, 20)))
    save_config_section(path, "tuning", holder)

    loaded = load_tuning_config(path, (640, 480))
    assert loaded == holder.get()
    assert isinstance(loaded.eye_pos, tuple)


def test_save_keeps_other_sections(tmp_path):
    path = tmp_path / "tuning.toml"
    path.write_text('[other]\nvalue = 1\n')
    save_config_section(path, "tuning", ThreadSafeConfig(TuningConfig()))
    text = path.read_text()
    assert "[other]" in text
    assert "[tuning]" in text


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_tuning_config(tmp_path / "nope.toml", (100, 80))
    assert cfg == TuningConfig.for_resolution(100, 80)


def test_partial_section_overrides_only_given_keys(tmp_path):
    path = tmp_path / "tuning.toml"
    path.write_text('[tuning]\nhigh_threshold = 90.0\nbogus = 1\n')
    cfg = load_tuning_config(path, (100, 80))
    assert cfg.high_threshold == 90.0
    assert cfg.low_threshold == 60.0
    assert cfg.eye_pos == (50, 40)


def test_packaged_file_loads():
    cfg = load_tuning_config(TUNING_TOML_PATH, (640, 480))
    assert cfg.low_threshold == 60.0
    assert cfg.high_threshold == 120.0
    assert cfg.eye_pos == (320, 240)


if __name__ == "__main__":
    pytest.main([__file__])
