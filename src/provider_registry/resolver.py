"""
Provider name resolution.

A TypeResolver turns provider names read from registries into classes and
builds no-argument instances of them. ImportTypeResolver (the default)
imports the named module; StaticTypeResolver looks names up in an explicit
table for code that doesn't want registries to import arbitrary modules.

TypeCache sits on top of a resolver for the duration of one discovery
session: it validates resolved classes against the category and resolves
every name at most once.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Type

from .exceptions import TypeMismatchError, TypeResolutionError

logger = logging.getLogger(__name__)


class TypeResolver(ABC):
    """Resolves provider names to classes and constructs providers."""

    @abstractmethod
    def find_type(self, name: str) -> Optional[Any]:
        """
        Find the object a provider name refers to.

        Returns:
            The named object, or None if nothing with that name exists.
            Failures other than "not found" are raised as is.
        """

    def construct(self, cls: Type) -> Any:
        """Create a provider instance with no arguments."""
        return cls()


class ImportTypeResolver(TypeResolver):
    """
    Resolves names through importlib.

    Supported name forms:
        package.module.Class
        package.module.Outer.Inner
        package.module:Outer.Inner   (entry point style)
    """

    def find_type(self, name: str) -> Optional[Any]:
        if ":" in name:
            module_name, _, qualname = name.partition(":")
            module = self._import(module_name)
            if module is None or not qualname:
                return None
            return self._get_attribute(module, qualname.split("."))

        # Try the longest importable module prefix first
        parts = name.split(".")
        for index in range(len(parts) - 1, 0, -1):
            module = self._import(".".join(parts[:index]))
            if module is not None:
                return self._get_attribute(module, parts[index:])
        return None

    @staticmethod
    def _import(module_name: str):
        try:
            return importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only a missing module on the name's own path means "not found";
            # a missing dependency of an existing module is a real failure
            if e.name and (module_name == e.name or module_name.startswith(e.name + ".")):
                return None
            raise
        except ValueError:
            # Empty or relative module names
            return None

    @staticmethod
    def _get_attribute(obj: Any, path) -> Optional[Any]:
        for attr in path:
            if not attr:
                return None
            obj = getattr(obj, attr, None)
            if obj is None:
                return None
        return obj


class StaticTypeResolver(TypeResolver):
    """
    Resolves names from an explicit name → class table.

    Usage:
        resolver = StaticTypeResolver()

        @resolver.register
        class JsonCodec(Codec):
            ...

        @resolver.register("codecs.yaml")
        class YamlCodec(Codec):
            ...
    """

    def __init__(self, types: Optional[Dict[str, Type]] = None):
        self._types: Dict[str, Type] = dict(types or {})

    def register(self, cls_or_name=None, name: Optional[str] = None):
        """
        Register a class under a name (default: its qualified name).

        Can be called directly, used as a bare decorator, or used as a
        decorator factory taking the name.
        """
        if isinstance(cls_or_name, str):
            return self._decorator(cls_or_name)
        if cls_or_name is None:
            return self._decorator(name)
        return self._decorator(name)(cls_or_name)

    def _decorator(self, name: Optional[str]) -> Callable[[Type], Type]:
        def decorator(cls: Type) -> Type:
            key = name or f"{cls.__module__}.{cls.__qualname__}"
            self._types[key] = cls
            logger.debug(f"Registered static provider type {cls.__name__} as '{key}'")
            return cls
        return decorator

    def find_type(self, name: str) -> Optional[Any]:
        return self._types.get(name)


def is_provider_type(obj: Any, category: Type) -> bool:
    """Check that obj is a class implementing category."""
    if not isinstance(obj, type):
        return False
    try:
        return issubclass(obj, category)
    except TypeError:
        # Protocols with data members don't support issubclass()
        return False


class TypeCache:
    """
    Session-scoped name → class cache for one category.

    Args:
        category: Class every resolved provider must subclass
        resolver: Resolver used on cache misses
    """

    def __init__(self, category: Type, resolver: TypeResolver):
        self.category = category
        self.resolver = resolver
        self._types: Dict[str, Type] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)

    def resolve(self, name: str, resource=None) -> Type:
        """
        Resolve and validate a provider name.

        Args:
            name: Provider name from a registry line
            resource: Resource the name was read from, for diagnostics

        Returns:
            Provider class

        Raises:
            TypeResolutionError: If the name doesn't resolve
            TypeMismatchError: If the class doesn't implement the category
        """
        cls = self._types.get(name)
        if cls is not None:
            return cls

        try:
            obj = self.resolver.find_type(name)
        except Exception as e:
            raise TypeResolutionError(name, resource, reason=f"can't be loaded: {e}") from e
        if obj is None:
            raise TypeResolutionError(name, resource)
        if not is_provider_type(obj, self.category):
            raise TypeMismatchError(name, resource, self.category)

        self._types[name] = obj
        logger.debug(f"Resolved service provider '{name}' to {obj.__module__}.{obj.__qualname__}")
        return obj
