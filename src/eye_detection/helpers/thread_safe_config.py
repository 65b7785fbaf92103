from dataclasses import asdict, fields

import threading
from copy import deepcopy
from typing import Generic, TypeVar

T = TypeVar("T")


# ---------- Thread-safe config wrapper ----------
class ThreadSafeConfig(Generic[T]):
    """
    Guards a dataclass instance behind a single lock.

    Readers take one snapshot per use with get() instead of reading fields one by
    one, so dependent fields (e.g. a min/max pair) are always consistent.
    """

    def __init__(self, data_obj: T):
        self._lock = threading.Lock()
        self._data = data_obj
        self._field_names = {f.name for f in fields(data_obj)}

    def get(self) -> T:
        with self._lock:
            return deepcopy(self._data)

    def set(self, field, value):
        self.update(**{field: value})

    def update(self, **kwargs):
        unknown = set(kwargs) - self._field_names
        if unknown:
            raise AttributeError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
        with self._lock:
            for k, v in kwargs.items():
                setattr(self._data, k, v)

    def replace(self, data_obj: T):
        with self._lock:
            self._data = deepcopy(data_obj)

    def get_field(self, field):
        with self._lock:
            return getattr(self._data, field)

    def asdict(self) -> dict:
        with self._lock:
            return asdict(self._data)
