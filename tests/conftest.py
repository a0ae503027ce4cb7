"""Pytest configuration and fixtures for provider_registry tests."""

import importlib
import io
import sys
import textwrap
from pathlib import Path

import pytest

from provider_registry import DIRECTORY, DiscoveryContext, RegistryResource, ResourceLocator


GREETERS_SOURCE = '''
from abc import ABC, abstractmethod


class Greeter(ABC):
    @abstractmethod
    def greet(self):
        ...


class EnglishGreeter(Greeter):
    def greet(self):
        return "hello"


class FrenchGreeter(Greeter):
    def greet(self):
        return "bonjour"


class BrokenGreeter(Greeter):
    def __init__(self):
        raise RuntimeError("boom")

    def greet(self):
        return None


class AbstractGreeter(Greeter):
    pass


class NotAGreeter:
    pass


class Outer:
    class InnerGreeter(Greeter):
        def greet(self):
            return "hi"


# Alias of EnglishGreeter under another name
AliasGreeter = EnglishGreeter
'''

GREETER_CATEGORY = "greeters_pkg.greeters.Greeter"


@pytest.fixture(autouse=True)
def reset_modules():
    """
    Drop temporary provider packages from sys.modules between tests.

    This prevents one test's provider classes from leaking into another test.
    """
    yield
    to_remove = [key for key in sys.modules.keys() if key.startswith('greeters_pkg')]
    for key in to_remove:
        del sys.modules[key]


@pytest.fixture
def greeters(tmp_path, monkeypatch):
    """
    Create an importable package with a Greeter category and providers.

    Returns the imported greeters_pkg.greeters module.
    """
    lib_dir = tmp_path / "lib"
    pkg_dir = lib_dir / "greeters_pkg"
    pkg_dir.mkdir(parents=True)
    (pkg_dir / "__init__.py").write_text("")
    (pkg_dir / "greeters.py").write_text(GREETERS_SOURCE)

    monkeypatch.syspath_prepend(str(lib_dir))
    return importlib.import_module("greeters_pkg.greeters")


@pytest.fixture
def write_registry(tmp_path):
    """
    Return a helper writing a registry resource under a fresh root.

    Usage: root = write_registry("root1", GREETER_CATEGORY, "a.B\\n# comment\\n")
    """
    def _write(root_name: str, name: str, content: str) -> Path:
        root = tmp_path / root_name
        registry = root / DIRECTORY / name
        registry.parent.mkdir(parents=True, exist_ok=True)
        registry.write_text(textwrap.dedent(content), encoding="utf-8")
        return root

    return _write


class TrackingStream(io.BytesIO):
    """BytesIO recording how many times it was closed."""

    def __init__(self, data: bytes, resource: "TrackingResource"):
        super().__init__(data)
        self._resource = resource

    def close(self):
        if not self.closed:
            self._resource.close_count += 1
        super().close()


class TrackingResource(RegistryResource):
    """In-memory registry resource that records opens and closes."""

    def __init__(self, location: str, content: str):
        self._location = location
        self.content = content
        self.open_count = 0
        self.close_count = 0

    @property
    def location(self) -> str:
        return self._location

    @property
    def is_open(self) -> bool:
        return self.open_count > self.close_count

    def open(self):
        self.open_count += 1
        return TrackingStream(self.content.encode("utf-8"), self)


class ListLocator(ResourceLocator):
    """Locator returning a fixed list of resources and recording lookups."""

    def __init__(self, resources):
        self.resources = list(resources)
        self.located = []

    def locate(self, name):
        self.located.append(name)
        for resource in self.resources:
            yield resource


@pytest.fixture
def tracking_context():
    """
    Return a factory building a context over in-memory tracking resources.

    Usage: context, resources = tracking_context(["a.B\\n"], ["c.D\\n"])
    """
    def _build(*contents, resolver=None, **kwargs):
        resources = [
            TrackingResource(f"memory:{index}", textwrap.dedent(content))
            for index, content in enumerate(contents)
        ]
        options = dict(kwargs)
        if resolver is not None:
            options["resolver"] = resolver
        return DiscoveryContext(locator=ListLocator(resources), **options), resources

    return _build
