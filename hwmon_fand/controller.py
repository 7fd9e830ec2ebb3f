"""Stepped PWM control of a single fan."""

import logging
import math

from hwmon_fand.attribute import AttributeFile
from hwmon_fand.sensor import Sensor
from hwmon_fand.target import TargetFunction

log = logging.getLogger(__name__)

PWM_MIN = 0
PWM_MAX = 255

# (minimum |speed_diff| in rpm, pwm step), largest first. Differences of
# 10 rpm or less leave the PWM alone.
PWM_STEPS: tuple[tuple[int, int], ...] = ((151, 10), (51, 3), (11, 1))


def speed_diff_to_pwm_diff(speed_diff: float) -> int:
    """Map a speed difference (target - current, rpm) to a PWM increment."""
    magnitude = abs(speed_diff)
    for threshold, step in PWM_STEPS:
        if magnitude >= threshold:
            return step if speed_diff > 0 else -step
    return 0


def clamp_pwm(value: int) -> int:
    return max(PWM_MIN, min(PWM_MAX, value))


class FanController:
    """Nudges one fan's PWM value toward the speed its target function asks for.

    The PWM is never set directly from the target; each call moves it by a
    small step chosen from the speed difference, so the same controller works
    for fans with different PWM-to-rpm curves.
    """

    def __init__(
        self,
        name: str,
        pwm: AttributeFile,
        fan_sensor: Sensor,
        target: TargetFunction,
        min_speed: int = 0,
        speed_floor: int = 0,
    ) -> None:
        if min_speed < 0 or speed_floor < 0:
            raise ValueError(f"Fan {name}: min_speed and speed_floor must not be negative")
        self.name = name
        self.pwm = pwm
        self.fan_sensor = fan_sensor
        self.target = target
        self.min_speed = min_speed
        self.speed_floor = speed_floor

    def __repr__(self) -> str:
        return f"FanController({self.name!r}, {self.pwm.path})"

    @property
    def enable(self) -> AttributeFile:
        return self.pwm.sibling("_enable")

    def current_speed(self) -> int:
        return max(self.speed_floor, math.floor(self.fan_sensor.value()))

    def target_speed(self) -> int:
        return max(self.min_speed, math.floor(self.target()))

    def set_fan_speed(self) -> int:
        """Run one control step and return the target speed.

        Raises HwmonError if the PWM attribute cannot be read or written.
        """
        current_pwm = self.pwm.read_int()
        current_speed = self.current_speed()
        target_speed = self.target_speed()
        pwm_diff = speed_diff_to_pwm_diff(target_speed - current_speed)

        log.debug(
            "%s: pwm %d, %d rpm, target %d rpm", self.name, current_pwm, current_speed, target_speed,
        )

        if pwm_diff != 0:
            log.info(
                "%s: %d rpm to %d rpm, changing %s by %d.",
                self.name, current_speed, target_speed, self.pwm.name, pwm_diff,
            )
            self.enable.write(1)
            self.pwm.write(clamp_pwm(current_pwm + pwm_diff))

        return target_speed
