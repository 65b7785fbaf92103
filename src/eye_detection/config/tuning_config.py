# config/tuning_config.py
from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any
import tomli
import tomli_w
from eye_detection.helpers.thread_safe_config import ThreadSafeConfig
from eye_detection.logging_utils.logging_setup import get_logger

log = get_logger(__name__)


@dataclass
class TuningConfig:
    """
    Live knobs of the detection pipeline.

    Edge detection:
    - low_threshold / high_threshold are gradient magnitudes (Sobel units).
    - size_filter drops contours with fewer points.

    Eye region (applied after the ellipse fit):
    - eye_pos is the expected (x, y) pupil center in pixels.
    - eye_pos_threshold is the accepted distance from eye_pos on each axis.
    - eye_min_radius < radius < eye_max_radius.
    """
    low_threshold: float = 60.0
    high_threshold: float = 120.0
    size_filter: int = 0

    eye_pos: tuple[int, int] = (320, 240)
    eye_pos_threshold: int = 96
    eye_min_radius: float = 68.57
    eye_max_radius: float = 96.0

    @classmethod
    def for_resolution(cls, width: int, height: int) -> TuningConfig:
        """Defaults that scale with the frame: eye window centered, radii relative to the short side."""
        short_side = min(width, height)
        return cls(
            eye_pos=(width // 2, height // 2),
            eye_pos_threshold=short_side // 5,
            eye_min_radius=short_side / 7.0,
            eye_max_radius=short_side / 5.0,
        )


TUNING_TOML_PATH = Path(__file__).parent / "tuning_config.toml"

_FIELD_NAMES = {f.name for f in fields(TuningConfig)}


def _toml_to_kwargs(raw: dict[str, Any]) -> dict[str, Any]:
    """Keep known keys and turn TOML arrays back into tuples."""
    kwargs = {}
    for key, value in raw.items():
        if key not in _FIELD_NAMES:
            log.warning(f"Ignoring unknown tuning key '{key}'")
            continue
        if key == "eye_pos":
            value = (int(value[0]), int(value[1]))
        kwargs[key] = value
    return kwargs


def _dataclass_to_toml_dict(cfg: TuningConfig) -> dict[str, Any]:
    data = asdict(cfg)
    data["eye_pos"] = list(cfg.eye_pos)
    return data


def load_tuning_config(path: Path,
                       resolution: tuple[int, int],
                       section: str = "tuning") -> TuningConfig:
    """
    Resolution-derived defaults, overridden by whatever the TOML section sets.
    A missing file is not an error: the defaults are returned.
    """
    cfg = TuningConfig.for_resolution(*resolution)
    try:
        with Path(path).open("rb") as f:
            data = tomli.load(f)
    except FileNotFoundError:
        log.info(f"No tuning file at {path}, using defaults")
        return cfg

    for key, value in _toml_to_kwargs(data.get(section, {})).items():
        setattr(cfg, key, value)
    return cfg


def save_config_section(path: Path, section: str, config: ThreadSafeConfig):
    """Persist a ThreadSafeConfig[TuningConfig] section back to TOML."""
    path = Path(path)
    try:
        with path.open("rb") as f:
            data = tomli.load(f)
    except FileNotFoundError:
        data = {}

    data[section] = _dataclass_to_toml_dict(config.get())

    with path.open("wb") as f:
        tomli_w.dump(data, f)
    log.info(f"Tuning saved to {path} [{section}]")
