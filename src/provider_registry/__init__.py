"""
provider-registry: Lazy discovery of service providers from text registries.

Implementations list their fully-qualified class names in registry
resources found on the search path; consumers look them up by category and
receive them lazily, in discovery order, deduplicated by name.
"""

__version__ = "0.1.0"

from .context import DiscoveryContext, ErrorPolicy, get_context
from .exceptions import (
    InstantiationError,
    RegistryError,
    ResourceAccessError,
    TypeMismatchError,
    TypeResolutionError,
)
from .iterators import ProviderClassIterator, ProviderIterator
from .locator import (
    DIRECTORY,
    FileResource,
    RegistryResource,
    ResourceLocator,
    SearchPathLocator,
    ZipResource,
    category_name,
)
from .reader import RegistryReader, parse_line
from .resolver import ImportTypeResolver, StaticTypeResolver, TypeCache, TypeResolver
from .service import lookup, lookup_classes, lookup_first

__all__ = [
    # Lookup
    "lookup",
    "lookup_first",
    "lookup_classes",
    # Configuration
    "DiscoveryContext",
    "ErrorPolicy",
    "get_context",
    # Iterators
    "ProviderClassIterator",
    "ProviderIterator",
    # Resources
    "DIRECTORY",
    "RegistryResource",
    "FileResource",
    "ZipResource",
    "ResourceLocator",
    "SearchPathLocator",
    "category_name",
    "RegistryReader",
    "parse_line",
    # Resolution
    "TypeResolver",
    "ImportTypeResolver",
    "StaticTypeResolver",
    "TypeCache",
    # Exceptions
    "RegistryError",
    "ResourceAccessError",
    "TypeResolutionError",
    "TypeMismatchError",
    "InstantiationError",
]
