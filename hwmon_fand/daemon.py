"""Main daemon entry point: sensor sampling and fan control loops."""

import logging
import signal
import sys
import threading
from collections.abc import Callable, Mapping, Sequence

import yaml

from hwmon_fand.attribute import HwmonError
from hwmon_fand.config import Config
from hwmon_fand.controller import FanController
from hwmon_fand.sensor import ReadError, Sensor
from hwmon_fand.wiring import load_wiring

log = logging.getLogger(__name__)


class Daemon:
    """Runs the sensor-refresh and fan-control tasks on two threads.

    The tasks share nothing but the sensors and are not synchronised with
    each other. An unexpected exception in either one stops both.
    """

    def __init__(
        self,
        config: Config,
        sensors: Mapping[str, Sensor],
        controllers: Sequence[FanController],
    ) -> None:
        self._config = config
        self._sensors = sensors
        self._controllers = controllers
        self._stop = threading.Event()
        self._failed = False
        self._interrupted = False

    @property
    def failed(self) -> bool:
        return self._failed

    def stop(self) -> None:
        self._stop.set()

    def _on_shutdown(self, signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        log.info("Received %s, shutting down", sig_name)
        self._interrupted = True
        self._stop.set()

    def refresh_sensors(self) -> None:
        """Read one sample from every sensor."""
        for sensor in self._sensors.values():
            try:
                sensor.update()
            except ReadError as e:
                log.warning("%s", e)

    def control_fans(self) -> None:
        """Run one control step for every fan."""
        for controller in self._controllers:
            try:
                controller.set_fan_speed()
            except HwmonError as e:
                log.warning("%s: %s", controller.name, e)

    def _sensor_loop(self) -> None:
        while not self._stop.is_set():
            self.refresh_sensors()
            self._stop.wait(self._config.sensor_interval)

    def _control_loop(self) -> None:
        log.info("Collecting sensor values for %.0f seconds ...", self._config.warmup)
        if self._stop.wait(self._config.warmup):
            return
        log.info("Controlling fan speed.")
        while not self._stop.is_set():
            self.control_fans()
            self._stop.wait(self._config.control_interval)

    def _run_task(self, body: Callable[[], None]) -> None:
        try:
            body()
        except Exception:
            log.exception("Exception in thread %s", threading.current_thread().name)
            self._failed = True
            self._stop.set()

    def run(self) -> int:
        """Start both tasks and block until stopped. Returns the exit status."""
        log.info(
            "Running %d sensors and %d fans (sensor_interval=%.1fs, control_interval=%.1fs)",
            len(self._sensors),
            len(self._controllers),
            self._config.sensor_interval,
            self._config.control_interval,
        )

        previous = {
            sig: signal.signal(sig, self._on_shutdown) for sig in (signal.SIGTERM, signal.SIGINT)
        }
        threads = [
            threading.Thread(
                target=self._run_task, args=(self._sensor_loop,), name="sensor-refresh", daemon=True,
            ),
            threading.Thread(
                target=self._run_task, args=(self._control_loop,), name="fan-control", daemon=True,
            ),
        ]
        try:
            for t in threads:
                t.start()
            # Short waits so signal handlers get to run on the main thread
            while not self._stop.wait(0.5):
                pass
            for t in threads:
                t.join()
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        if self._failed:
            return 1
        if self._interrupted:
            log.info("Interrupted.")
        log.info("Done.")
        return 0


def main() -> None:
    """Entry point."""
    try:
        config = Config.load()
    except (ValueError, SystemExit) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    config.setup_logging()
    log.info("Starting ...")

    try:
        sensors, controllers = load_wiring(config.fans_file).build()
    except (ValueError, KeyError, OSError, yaml.YAMLError) as e:
        print(f"Configuration error in {config.fans_file}: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(Daemon(config, sensors, controllers).run())


if __name__ == "__main__":
    main()
