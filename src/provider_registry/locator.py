"""
Registry resource location.

A category's providers are listed in a text resource named after the
category and stored under a reserved directory of every search path root:

    <root>/META-INF/services/<category module>.<category qualname>

Roots can be plain directories or zip archives (wheels, eggs, zipapps).
Every root that holds such a resource contributes one RegistryResource, in
search path order. Locating never opens a resource; that is left to the
RegistryReader.
"""

import io
import logging
import os
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional, Set

from ._search_path import get_search_path

logger = logging.getLogger(__name__)

#: Reserved directory holding provider registries under each root.
DIRECTORY = "META-INF/services"


def category_name(category: type) -> str:
    """Return the registry resource name for a category class."""
    return f"{category.__module__}.{category.__qualname__}"


class RegistryResource(ABC):
    """Handle of a single registry resource. Opening is deferred to the reader."""

    @property
    @abstractmethod
    def location(self) -> str:
        """Human readable location used in logs and error messages."""

    @abstractmethod
    def open(self) -> BinaryIO:
        """Open a fresh binary stream over the resource content."""

    def __str__(self) -> str:
        return self.location

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.location!r})"


class FileResource(RegistryResource):
    """Registry resource stored as a file in a directory root."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def location(self) -> str:
        return str(self.path)

    def open(self) -> BinaryIO:
        return open(self.path, "rb")


class ZipResource(RegistryResource):
    """Registry resource stored as a member of a zip archive root."""

    def __init__(self, archive: Path, member: str):
        self.archive = Path(archive)
        self.member = member

    @property
    def location(self) -> str:
        return f"{self.archive}!/{self.member}"

    def open(self) -> BinaryIO:
        # The archive is closed before returning
        try:
            with zipfile.ZipFile(self.archive) as archive:
                return io.BytesIO(archive.read(self.member))
        except (zipfile.BadZipFile, KeyError) as e:
            raise OSError(f"Can't read {self.location}: {e}") from e


class ResourceLocator(ABC):
    """Finds the registry resources of a category."""

    @abstractmethod
    def locate(self, name: str) -> Iterator[RegistryResource]:
        """
        Lazily enumerate registry resources for a category.

        Args:
            name: Category resource name (see category_name())

        Returns:
            Iterator over resources in search path order, empty if none exist
        """


class SearchPathLocator(ResourceLocator):
    """
    Locates registry resources under every root of a search path.

    Args:
        search_path: Roots to scan. None means the ambient search path
                     (PROVIDER_REGISTRY_PATH followed by sys.path), read on
                     every locate() call. A single path is one root.
        directory: Reserved directory under each root (default: META-INF/services)
    """

    def __init__(self, search_path: Optional[Iterable] = None, directory: str = DIRECTORY):
        if isinstance(search_path, (str, bytes, os.PathLike)):
            search_path = [search_path]
        self.search_path = None if search_path is None else [os.fsdecode(p) for p in search_path]
        self.directory = directory.strip("/")

    def locate(self, name: str) -> Iterator[RegistryResource]:
        roots = self.search_path if self.search_path is not None else get_search_path()
        member = f"{self.directory}/{name}"
        visited: Set[str] = set()

        logger.debug(f"Locating registry resources: name={name}, roots={len(roots)}")

        for root in roots:
            root_path = Path(root)
            key = os.path.realpath(root_path)
            if key in visited:
                continue
            visited.add(key)

            if root_path.is_dir():
                candidate = root_path / member
                if candidate.is_file():
                    logger.debug(f"Found registry resource: {candidate}")
                    yield FileResource(candidate)
            elif root_path.is_file():
                resource = self._locate_in_archive(root_path, member)
                if resource is not None:
                    yield resource

    @staticmethod
    def _locate_in_archive(path: Path, member: str) -> Optional[ZipResource]:
        try:
            if not zipfile.is_zipfile(path):
                return None
            with zipfile.ZipFile(path) as archive:
                archive.getinfo(member)
        except KeyError:
            return None
        except (OSError, zipfile.BadZipFile) as e:
            # Skip archives that can't be listed, like import would
            logger.debug(f"Could not read archive {path}: {e}")
            return None

        resource = ZipResource(path, member)
        logger.debug(f"Found registry resource: {resource}")
        return resource
