"""Tests for target speed functions."""

from unittest.mock import MagicMock

import pytest

from hwmon_fand.sensor import Sensor
from hwmon_fand.target import BoundTarget, WeightedTarget

# Sample CPU fan curve: 500 rpm floor is applied by the controller
CPU = WeightedTarget(
    weights={"temp_system": 0.1, "temp_cpu": 0.6, "temp_cpu_thermistor": 0.3},
    scale=40,
    offset=-1000,
)


class TestWeightedTarget:
    def test_weighted_mix(self) -> None:
        temps = {"temp_system": 30.0, "temp_cpu": 50.0, "temp_cpu_thermistor": 40.0}
        # (3 + 30 + 12) * 40 - 1000 = 800
        assert CPU.compute(temps) == pytest.approx(800.0)

    def test_inputs(self) -> None:
        assert CPU.inputs == ("temp_system", "temp_cpu", "temp_cpu_thermistor")

    def test_missing_input_raises(self) -> None:
        with pytest.raises(KeyError):
            CPU.compute({"temp_system": 30.0})

    def test_extra_inputs_ignored(self) -> None:
        f = WeightedTarget(weights={"a": 1.0}, scale=10)
        assert f.compute({"a": 50.0, "b": 99.0}) == pytest.approx(500.0)

    def test_defaults_identity(self) -> None:
        f = WeightedTarget(weights={"a": 1.0})
        assert f.compute({"a": 42.0}) == pytest.approx(42.0)

    def test_is_pure(self) -> None:
        temps = {"temp_system": 30.0, "temp_cpu": 50.0, "temp_cpu_thermistor": 40.0}
        assert CPU.compute(temps) == CPU.compute(temps)
        assert temps == {"temp_system": 30.0, "temp_cpu": 50.0, "temp_cpu_thermistor": 40.0}


class TestBoundTarget:
    def _sensor(self, value: float) -> MagicMock:
        sensor = MagicMock(spec=Sensor)
        sensor.value.return_value = value
        return sensor

    def test_reads_current_sensor_values(self) -> None:
        sensors = {
            "temp_system": self._sensor(30.0),
            "temp_cpu": self._sensor(50.0),
            "temp_cpu_thermistor": self._sensor(40.0),
        }
        target = BoundTarget(CPU, sensors)
        assert target() == pytest.approx(800.0)

        sensors["temp_cpu"].value.return_value = 60.0
        # cpu weight 0.6 * 10 °C * 40 rpm/°C
        assert target() == pytest.approx(1040.0)

    def test_only_reads_its_inputs(self) -> None:
        unrelated = self._sensor(1.0)
        target = BoundTarget(WeightedTarget(weights={"a": 1.0}), {"a": self._sensor(5.0), "b": unrelated})
        assert target() == pytest.approx(5.0)
        unrelated.value.assert_not_called()
