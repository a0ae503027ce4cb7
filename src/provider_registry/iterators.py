"""
Lazy iterators over service providers.

ProviderClassIterator merges every registry resource of a category into one
ordered, deduplicated stream of provider classes. ProviderIterator wraps it
and instantiates each class once.

Both iterators pull on demand: a registry is opened only when the previous
one is exhausted, and a name is resolved only when the caller asks for the
item it produces. Errors are raised at the item that causes them, so items
already produced stay usable.

The class iterator is a small state machine:

    NEED_RESOURCE -> NEED_LINE     next registry resource opened
    NEED_RESOURCE -> EXHAUSTED     no resources left
    NEED_LINE     -> NEED_LINE     blank, comment or duplicate line
    NEED_LINE     -> NEED_RESOURCE current resource exhausted (and closed)
    NEED_LINE     -> HAVE_ITEM     provider name resolved
    HAVE_ITEM     -> NEED_LINE     buffered class handed to the caller
    any           -> EXHAUSTED     close() or a fatal error

At most one registry resource is open at a time. It is released on
exhaustion, on error, on close() (or leaving a ``with`` block), and when an
abandoned iterator is garbage collected.
"""

import logging
from enum import Enum, auto
from typing import Dict, Generic, Iterator, Optional, Type, TypeVar

from .context import DiscoveryContext, get_context
from .exceptions import (
    InstantiationError,
    ResourceAccessError,
    TypeMismatchError,
    TypeResolutionError,
)
from .locator import RegistryResource, category_name
from .reader import RegistryReader, parse_line
from .resolver import TypeCache

logger = logging.getLogger(__name__)

P = TypeVar('P')


class _State(Enum):
    NEED_RESOURCE = auto()
    NEED_LINE = auto()
    HAVE_ITEM = auto()
    EXHAUSTED = auto()


class ProviderClassIterator(Generic[P]):
    """
    Lazy iterator over provider classes of a category.

    Args:
        category: Category class every provider must subclass
        context: Discovery context (default: ambient context)

    Attributes:
        last_name: Registry name of the most recently produced class
        last_resource: Registry resource that name was read from
    """

    def __init__(self, category: Type[P], context: Optional[DiscoveryContext] = None):
        self.category = category
        self.context = get_context(context)
        self.name = category_name(category)
        self.last_name: Optional[str] = None
        self.last_resource: Optional[RegistryResource] = None

        self._types = TypeCache(category, self.context.resolver)
        self._resources: Optional[Iterator[RegistryResource]] = None
        self._reader: Optional[RegistryReader] = None
        self._next: Optional[Type[P]] = None
        self._next_name: Optional[str] = None
        self._state = _State.NEED_RESOURCE
        self._produced = 0

    def __iter__(self) -> "ProviderClassIterator[P]":
        return self

    def __next__(self) -> Type[P]:
        if not self.has_next():
            raise StopIteration
        cls = self._next
        self.last_name = self._next_name
        self.last_resource = self._reader.resource
        self._next = None
        self._next_name = None
        self._state = _State.NEED_LINE
        self._produced += 1
        return cls

    def has_next(self) -> bool:
        """
        Check whether another provider class is available.

        Reads ahead until the next class is resolved or every registry is
        exhausted.

        Raises:
            ResourceAccessError: If a registry can't be located, opened or read
            TypeResolutionError: If a provider name doesn't resolve (FAIL_FAST)
            TypeMismatchError: If a provider doesn't implement the category (FAIL_FAST)
        """
        try:
            return self._advance()
        except Exception:
            self.close()
            raise

    def close(self) -> None:
        """Release the open registry resource and end the iteration."""
        reader, self._reader = self._reader, None
        resources, self._resources = self._resources, None
        self._next = None
        self._next_name = None
        self._state = _State.EXHAUSTED
        if reader is not None:
            reader.close()
        close_resources = getattr(resources, "close", None)
        if close_resources is not None:
            close_resources()

    def __enter__(self) -> "ProviderClassIterator[P]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        if getattr(self, "_reader", None) is not None:
            self.close()

    def _advance(self) -> bool:
        while self._state is not _State.HAVE_ITEM:
            if self._state is _State.EXHAUSTED:
                return False
            if self._state is _State.NEED_RESOURCE:
                self._open_next_resource()
            else:
                self._read_next_entry()
        return True

    def _open_next_resource(self) -> None:
        try:
            if self._resources is None:
                self._resources = iter(self.context.locator.locate(self.name))
            resource = next(self._resources, None)
        except OSError as e:
            raise ResourceAccessError(
                f'An error occurred when locating category "{self.name}" provider registries'
            ) from e

        if resource is None:
            self._state = _State.EXHAUSTED
            self._resources = None
            logger.info(f"Discovered {self._produced} {self.name} providers")
            return

        self._reader = RegistryReader(resource).open()
        self._state = _State.NEED_LINE

    def _read_next_entry(self) -> None:
        reader = self._reader
        line = reader.readline()
        if line is None:
            # readline() already closed the exhausted resource
            self._reader = None
            self._state = _State.NEED_RESOURCE
            return

        name = parse_line(line)
        if name is None:
            return
        if name in self._types:
            logger.debug(f"Skipping duplicate service provider '{name}' ({reader.resource})")
            return

        try:
            cls = self._types.resolve(name, reader.resource)
        except (TypeResolutionError, TypeMismatchError) as error:
            self.context.error_policy.handle(error)
            return

        self._next = cls
        self._next_name = name
        self._state = _State.HAVE_ITEM


_EMPTY = object()


class ProviderIterator(Generic[P]):
    """
    Lazy iterator over provider instances of a category.

    Each distinct provider class is instantiated once per iterator; a class
    listed under two names (e.g. an alias re-exported by another module)
    yields the same instance both times.

    Args:
        classes: Class iterator supplying provider classes
    """

    def __init__(self, classes: ProviderClassIterator[P]):
        self.classes = classes
        self._instances: Dict[type, P] = {}
        self._next = _EMPTY

    def __iter__(self) -> "ProviderIterator[P]":
        return self

    def __next__(self) -> P:
        if not self.has_next():
            raise StopIteration
        provider, self._next = self._next, _EMPTY
        return provider

    def has_next(self) -> bool:
        """
        Check whether another provider instance is available.

        The next instance is built here so that has_next() stays truthful
        when failed providers are skipped.

        Raises:
            InstantiationError: If a provider can't be instantiated (FAIL_FAST)
            Any error raised by ProviderClassIterator.has_next()
        """
        try:
            return self._advance()
        except Exception:
            self.close()
            raise

    def close(self) -> None:
        """Release the open registry resource and end the iteration."""
        self._next = _EMPTY
        self.classes.close()

    def __enter__(self) -> "ProviderIterator[P]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _advance(self) -> bool:
        while self._next is _EMPTY:
            if not self.classes.has_next():
                return False
            cls = next(self.classes)

            provider = self._instances.get(cls, _EMPTY)
            if provider is not _EMPTY:
                self._next = provider
                break

            try:
                provider = self._construct(cls)
            except InstantiationError as error:
                self.classes.context.error_policy.handle(error)
                continue

            self._instances[cls] = provider
            self._next = provider
        return True

    def _construct(self, cls: Type[P]) -> P:
        try:
            return self.classes.context.resolver.construct(cls)
        except Exception as e:
            raise InstantiationError(self.classes.last_name, self.classes.last_resource) from e
