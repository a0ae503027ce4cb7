"""Line-oriented reading of registry resources."""

import io
import logging
from typing import Iterator, Optional

from .exceptions import ResourceAccessError
from .locator import RegistryResource

logger = logging.getLogger(__name__)

# utf-8-sig drops a leading BOM that would otherwise stick to the first name
ENCODING = "utf-8-sig"


def parse_line(line: str) -> Optional[str]:
    """
    Parse a single registry line.

    Everything from the first '#' on is a comment. Surrounding whitespace is
    stripped.

    Returns:
        Provider name, or None for blank and comment-only lines
    """
    index = line.find("#")
    if index >= 0:
        line = line[:index]
    name = line.strip()
    return name or None


class RegistryReader:
    """
    Reads raw lines of one registry resource.

    The reader owns the stream it opens and closes it exactly once: on end
    of input, on the first read error, or on close(), whichever comes first.
    """

    def __init__(self, resource: RegistryResource):
        self.resource = resource
        self._stream: Optional[io.TextIOBase] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> "RegistryReader":
        """Open the underlying resource as UTF-8 text."""
        if self._stream is not None or self._closed:
            raise ResourceAccessError(f"Registry reader can't be reopened ({self.resource})", self.resource)
        try:
            raw = self.resource.open()
        except OSError as e:
            self._closed = True
            raise ResourceAccessError(
                f"An error occurred when opening provider registry ({self.resource})", self.resource
            ) from e
        try:
            if isinstance(raw, io.TextIOBase):
                raise TypeError(f"{type(raw).__name__} is a text stream, expected a binary one")
            self._stream = io.TextIOWrapper(raw, encoding=ENCODING)
        except (TypeError, ValueError, AttributeError) as e:
            self._closed = True
            raw.close()
            raise ResourceAccessError(
                f"An error occurred when opening provider registry ({self.resource})", self.resource
            ) from e
        logger.debug(f"Opened registry resource: {self.resource}")
        return self

    def readline(self) -> Optional[str]:
        """
        Read the next raw line.

        Returns:
            The line including its terminator, or None once input is exhausted

        Raises:
            ResourceAccessError: If reading or decoding fails
        """
        if self._closed:
            return None
        if self._stream is None:
            self.open()
        try:
            line = self._stream.readline()
        except (OSError, UnicodeDecodeError) as e:
            self.close()
            raise ResourceAccessError(
                f"An error occurred when reading provider registry ({self.resource})", self.resource
            ) from e
        if not line:
            self.close()
            return None
        return line

    def __iter__(self) -> Iterator[str]:
        line = self.readline()
        while line is not None:
            yield line
            line = self.readline()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.close()
            logger.debug(f"Closed registry resource: {self.resource}")

    def __enter__(self) -> "RegistryReader":
        if self._stream is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
