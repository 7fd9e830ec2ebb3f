"""Target fan speed functions."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from hwmon_fand.sensor import Sensor


class TargetFunction(Protocol):
    """Computes the desired fan speed (rpm) from current sensor averages."""

    def __call__(self) -> float: ...


@dataclass(frozen=True)
class WeightedTarget:
    """A linear function of a weighted mix of temperatures.

    target = (sum of weight * temperature) * scale + offset
    """

    weights: Mapping[str, float]  # sensor name -> weight
    scale: float = 1.0            # rpm per °C of weighted temperature
    offset: float = 0.0           # rpm

    @property
    def inputs(self) -> tuple[str, ...]:
        return tuple(self.weights)

    def compute(self, temperatures: Mapping[str, float]) -> float:
        """Compute the target speed. Raises KeyError for a missing input."""
        mix = sum(weight * temperatures[name] for name, weight in self.weights.items())
        return mix * self.scale + self.offset


@dataclass(frozen=True)
class BoundTarget:
    """A WeightedTarget wired to the sensors it reads from."""

    function: WeightedTarget
    sensors: Mapping[str, Sensor] = field(repr=False)

    def __call__(self) -> float:
        return self.function.compute(
            {name: self.sensors[name].value() for name in self.function.inputs}
        )
