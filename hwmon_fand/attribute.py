"""Read and write single textual sysfs attributes."""

import logging
from pathlib import Path

log = logging.getLogger(__name__)


class HwmonError(Exception):
    """Base class for recoverable hardware-monitoring errors."""


class AttributeIOError(HwmonError):
    """Reading or writing an attribute file failed."""

    def __init__(self, path: Path, error: OSError) -> None:
        super().__init__(f"{path}: {error.strerror or error}")
        self.path = path
        self.errno = error.errno


class ParseError(HwmonError):
    """Attribute content is not a number."""


class AttributeFile:
    """One sysfs attribute, e.g. ``/sys/class/hwmon/hwmon2/pwm2``.

    The file is opened on every access; nothing is cached.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def __repr__(self) -> str:
        return f"AttributeFile({str(self._path)!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AttributeFile) and self._path == other._path

    def __hash__(self) -> int:
        return hash(self._path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    def sibling(self, suffix: str) -> "AttributeFile":
        """Return the attribute named ``<this path><suffix>``, e.g. ``pwm2_enable``."""
        return AttributeFile(self._path.with_name(self._path.name + suffix))

    def read(self) -> str:
        """Return the raw file content. Raises AttributeIOError on failure."""
        try:
            with open(self._path) as f:
                return f.read()
        except OSError as e:
            raise AttributeIOError(self._path, e) from e

    def read_int(self) -> int:
        """Parse the first whitespace-delimited token as an integer."""
        return parse_int(self.read(), self._path)

    def write(self, value: int) -> None:
        """Write an integer as decimal text. Raises AttributeIOError on failure."""
        log.debug("Writing %d to %s", value, self._path)
        try:
            with open(self._path, "w") as f:
                f.write(str(int(value)))
        except OSError as e:
            raise AttributeIOError(self._path, e) from e


def parse_int(raw: str, source: object = "attribute") -> int:
    """Parse the first token of ``raw`` as an integer. Raises ParseError."""
    tokens = raw.split()
    if not tokens:
        raise ParseError(f"{source}: empty content")
    try:
        return int(tokens[0])
    except ValueError:
        raise ParseError(f"{source}: not a number: {tokens[0]!r}") from None
