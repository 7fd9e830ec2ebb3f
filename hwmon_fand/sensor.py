"""Sensors backed by sysfs attributes, smoothed through a ring buffer."""

import threading
from collections import deque
from collections.abc import Callable

from hwmon_fand.attribute import AttributeFile, HwmonError, parse_int

SENSOR_KINDS = ("speed", "temperature")


class ReadError(HwmonError):
    """A sensor update failed; the buffer keeps its previous samples."""


class SampleBuffer:
    """Fixed-capacity FIFO of numeric samples, safe to share between threads."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Sample buffer capacity must be at least 1, got {capacity}")
        self._samples: deque[float] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def push(self, sample: float) -> None:
        """Append a sample, evicting the oldest one when full."""
        with self._lock:
            self._samples.append(sample)

    def average(self) -> float | None:
        """Mean of the held samples, or None when empty."""
        with self._lock:
            if not self._samples:
                return None
            return sum(self._samples) / len(self._samples)


def parse_speed(raw: str) -> int:
    """Fan input in rpm."""
    return parse_int(raw, "fan speed")


def parse_temperature(raw: str) -> float:
    """Temperature input in millidegrees, returned in °C."""
    return parse_int(raw, "temperature") / 1000.0


_PARSERS: dict[str, Callable[[str], float]] = {
    "speed": parse_speed,
    "temperature": parse_temperature,
}


class Sensor:
    """A sysfs input attribute plus the samples read from it.

    The parse callable decides what kind of sensor this is; use
    :meth:`speed` or :meth:`temperature` rather than passing it directly.
    """

    def __init__(
        self,
        name: str,
        attribute: AttributeFile,
        parse: Callable[[str], float],
        samples: int = 5,
    ) -> None:
        self.name = name
        self.attribute = attribute
        self._parse = parse
        self._buffer = SampleBuffer(samples)

    @classmethod
    def speed(cls, name: str, attribute: AttributeFile, samples: int = 5) -> "Sensor":
        return cls(name, attribute, parse_speed, samples)

    @classmethod
    def temperature(cls, name: str, attribute: AttributeFile, samples: int = 3) -> "Sensor":
        return cls(name, attribute, parse_temperature, samples)

    @classmethod
    def from_kind(
        cls, kind: str, name: str, attribute: AttributeFile, samples: int | None = None,
    ) -> "Sensor":
        """Build a sensor from its configured kind ("speed" or "temperature")."""
        if kind not in _PARSERS:
            raise ValueError(
                f"Unknown sensor kind '{kind}'. Must be one of: {', '.join(SENSOR_KINDS)}"
            )
        if samples is None:
            return getattr(cls, kind)(name, attribute)
        return cls(name, attribute, _PARSERS[kind], samples)

    @property
    def kind(self) -> str:
        for kind, parse in _PARSERS.items():
            if parse is self._parse:
                return kind
        return "custom"

    @property
    def samples(self) -> int:
        return self._buffer.capacity

    def __repr__(self) -> str:
        return f"Sensor({self.name!r}, {self.kind}, {self.attribute.path})"

    def update(self) -> None:
        """Read one sample into the buffer.

        Raises ReadError if the attribute cannot be read or parsed; the
        buffer is left as it was.
        """
        try:
            sample = self._parse(self.attribute.read())
        except HwmonError as e:
            raise ReadError(f"Sensor {self.name}: {e}") from e
        self._buffer.push(sample)

    def value(self, default: float = 0) -> float:
        """Average of the buffered samples, or ``default`` before the first sample."""
        average = self._buffer.average()
        return default if average is None else average
