"""
Service provider lookup.

Providers of a category are listed, one fully-qualified class name per line,
in registry resources named after the category:

    # <root>/META-INF/services/myapp.codecs.Codec
    myapp.codecs.json.JsonCodec
    myapp.codecs.yaml:YamlCodec   # entry point style works too

Every call starts an independent session with its own caches. Lookups are
lazy; registries are read and providers resolved as the result is iterated.

Usage:
    from provider_registry import lookup, lookup_first

    for codec in lookup(Codec):
        codec.register()

    default_codec = lookup_first(Codec)
"""

from typing import Optional, Type, TypeVar

from .context import DiscoveryContext
from .iterators import ProviderClassIterator, ProviderIterator

P = TypeVar('P')


def _check_category(category) -> None:
    if not isinstance(category, type):
        raise TypeError(f"Service provider category must be a class, got {category!r}")


def lookup(category: Type[P], context: Optional[DiscoveryContext] = None) -> ProviderIterator[P]:
    """
    Search for providers of a category and iterate over their instances.

    Args:
        category: Category class to search providers for
        context: Discovery context overriding the ambient search path,
                 resolver or error policy

    Returns:
        Lazy iterator over provider instances. Close it (or use it in a
        ``with`` block) when abandoning it early.

    Raises (while iterating):
        ResourceAccessError: If a registry can't be read
        TypeResolutionError: If a provider class is not found
        TypeMismatchError: If a provider doesn't implement the category
        InstantiationError: If a provider can't be instantiated
    """
    _check_category(category)
    return ProviderIterator(ProviderClassIterator(category, context))


def lookup_first(category: Type[P], context: Optional[DiscoveryContext] = None) -> Optional[P]:
    """
    Return the first provider instance of a category, or None if there is none.

    Reads no further than needed for the first provider and releases the
    registry resource before returning.
    """
    _check_category(category)
    with ProviderIterator(ProviderClassIterator(category, context)) as providers:
        return next(providers, None)


def lookup_classes(category: Type[P], context: Optional[DiscoveryContext] = None) -> ProviderClassIterator[P]:
    """
    Search for providers of a category and iterate over their classes.

    Same as lookup() without instantiation.
    """
    _check_category(category)
    return ProviderClassIterator(category, context)
