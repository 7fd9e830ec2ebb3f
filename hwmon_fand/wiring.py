"""Sensor and fan wiring loaded from a YAML file.

The wiring names the hwmon device directory, the input attributes to sample
and, for every controlled fan, its PWM attribute, speed sensor and target
function. It is read once at startup.
"""

import glob
from dataclasses import dataclass
from pathlib import Path

import yaml

from hwmon_fand.attribute import AttributeFile
from hwmon_fand.controller import FanController
from hwmon_fand.sensor import SENSOR_KINDS, Sensor
from hwmon_fand.target import BoundTarget, WeightedTarget

DEFAULT_FANS_FILE = Path(__file__).parent / "fans.yaml"


@dataclass(frozen=True)
class SensorSpec:
    name: str
    kind: str
    path: str
    samples: int | None = None

    def __post_init__(self) -> None:
        if self.kind not in SENSOR_KINDS:
            raise ValueError(
                f"Sensor '{self.name}': invalid kind '{self.kind}'. "
                f"Must be one of: {', '.join(SENSOR_KINDS)}"
            )
        if self.samples is not None and self.samples < 1:
            raise ValueError(f"Sensor '{self.name}': samples must be at least 1, got {self.samples}")


@dataclass(frozen=True)
class FanSpec:
    name: str
    sensor: str
    pwm: str
    target: WeightedTarget
    min_speed: int = 0
    speed_floor: int = 0


def resolve_device(pattern: str) -> Path:
    """Resolve a (possibly globbed) device directory to a single path."""
    matches = sorted(glob.glob(pattern))
    if not matches:
        raise ValueError(f"No hwmon device matches '{pattern}'")
    return Path(matches[0])


@dataclass(frozen=True)
class Wiring:
    device: str
    sensors: tuple[SensorSpec, ...]
    fans: tuple[FanSpec, ...]

    def __post_init__(self) -> None:
        kinds = {s.name: s.kind for s in self.sensors}
        if len(kinds) != len(self.sensors):
            raise ValueError("Duplicate sensor names")

        pwms: set[str] = set()
        for fan in self.fans:
            if fan.sensor not in kinds:
                raise ValueError(f"Fan '{fan.name}': unknown sensor '{fan.sensor}'")
            if kinds[fan.sensor] != "speed":
                raise ValueError(f"Fan '{fan.name}': sensor '{fan.sensor}' is not a speed sensor")
            for name in fan.target.inputs:
                if name not in kinds:
                    raise ValueError(f"Fan '{fan.name}': target uses unknown sensor '{name}'")
                if kinds[name] != "temperature":
                    raise ValueError(
                        f"Fan '{fan.name}': target input '{name}' is not a temperature sensor"
                    )
            if fan.pwm in pwms:
                raise ValueError(f"Fan '{fan.name}': PWM '{fan.pwm}' is already controlled")
            pwms.add(fan.pwm)

    def build(self) -> tuple[dict[str, Sensor], list[FanController]]:
        """Create the sensors and fan controllers this wiring describes."""
        device = resolve_device(self.device)

        sensors = {
            s.name: Sensor.from_kind(s.kind, s.name, AttributeFile(device / s.path), s.samples)
            for s in self.sensors
        }
        controllers = [
            FanController(
                name=f.name,
                pwm=AttributeFile(device / f.pwm),
                fan_sensor=sensors[f.sensor],
                target=BoundTarget(f.target, sensors),
                min_speed=f.min_speed,
                speed_floor=f.speed_floor,
            )
            for f in self.fans
        ]
        return sensors, controllers


def _mapping(value: object, what: str) -> dict:
    """Return ``value`` as a dict; None counts as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


def _parse_samples(name: str, value: object) -> int | None:
    if value is None:
        return None
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        raise ValueError(f"Sensor '{name}': samples must be an integer, got {value!r}") from None


def _parse_sensor(name: str, raw: object) -> SensorSpec:
    spec = _mapping(raw, f"Sensor '{name}'")
    if "path" not in spec:
        raise ValueError(f"Sensor '{name}': missing 'path'")
    return SensorSpec(
        name=str(name),
        kind=str(spec.get("kind", "")),
        path=str(spec["path"]),
        samples=_parse_samples(name, spec.get("samples")),
    )


def _parse_fan(raw: object) -> FanSpec:
    if not isinstance(raw, dict):
        raise ValueError(f"Fan entry must be a mapping, got {raw!r}")
    target = _mapping(raw.get("target"), f"Fan '{raw.get('name')}': target")
    weights = _mapping(target.get("weights"), f"Fan '{raw.get('name')}': target weights")
    try:
        return FanSpec(
            name=str(raw["name"]),
            sensor=str(raw["sensor"]),
            pwm=str(raw["pwm"]),
            target=WeightedTarget(
                weights={str(k): float(v) for k, v in weights.items()},
                scale=float(target.get("scale", 1.0)),
                offset=float(target.get("offset", 0.0)),
            ),
            min_speed=int(raw.get("min_speed", 0)),
            speed_floor=int(raw.get("speed_floor", 0)),
        )
    except TypeError as e:
        raise ValueError(f"Fan '{raw.get('name')}': {e}") from None


def load_wiring(path: str | Path = DEFAULT_FANS_FILE) -> Wiring:
    """Load and validate a wiring file.

    Raises ValueError (or KeyError for a missing required key) on invalid
    content.
    """
    with open(path) as f:
        data = _mapping(yaml.safe_load(f), str(path))

    if "device" not in data:
        raise KeyError(f"{path}: missing 'device'")

    sensors = tuple(
        _parse_sensor(name, spec)
        for name, spec in _mapping(data.get("sensors"), f"{path}: sensors").items()
    )
    fans_raw = data.get("fans") or []
    if not isinstance(fans_raw, list):
        raise ValueError(f"{path}: fans must be a list, got {type(fans_raw).__name__}")
    fans = tuple(_parse_fan(raw) for raw in fans_raw)
    return Wiring(device=str(data["device"]), sensors=sensors, fans=fans)
