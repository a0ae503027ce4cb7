"""
Discovery context: where registries are located, how names are resolved and
what happens to entries that fail.

A DiscoveryContext replaces the ambient defaults for a single lookup call:

    context = DiscoveryContext.for_search_path(["plugins/"])
    codecs = list(lookup(Codec, context))

Environment:
    PROVIDER_REGISTRY_PATH: extra roots searched before sys.path
    PROVIDER_REGISTRY_ERROR_POLICY: default error policy ('fail_fast' or 'skip')
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .exceptions import RegistryError
from .locator import DIRECTORY, ResourceLocator, SearchPathLocator
from .resolver import ImportTypeResolver, TypeResolver

logger = logging.getLogger(__name__)

ERROR_POLICY_ENV = "PROVIDER_REGISTRY_ERROR_POLICY"


class ErrorPolicy(Enum):
    """What a session does with an entry that fails to resolve or instantiate."""

    FAIL_FAST = "fail_fast"  # Abort the rest of the lookup
    SKIP = "skip"  # Log and continue with the next entry

    def handle(self, error: RegistryError) -> None:
        """Raise the error under FAIL_FAST; log it under SKIP."""
        if self is ErrorPolicy.FAIL_FAST:
            raise error
        logger.warning(f"Skipping service provider: {error}")

    @classmethod
    def from_env(cls) -> "ErrorPolicy":
        value = os.environ.get(ERROR_POLICY_ENV)
        if not value:
            return cls.FAIL_FAST
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid {ERROR_POLICY_ENV}={value!r}, expected one of "
                f"{[policy.value for policy in cls]}"
            ) from None


@dataclass(frozen=True)
class DiscoveryContext:
    """
    Configuration for a discovery session.

    Attributes:
        locator: Finds registry resources (default: ambient search path)
        resolver: Resolves provider names and builds instances (default: importlib)
        error_policy: Handling of entries that fail to resolve or instantiate
    """
    locator: ResourceLocator = field(default_factory=SearchPathLocator)
    resolver: TypeResolver = field(default_factory=ImportTypeResolver)
    error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST

    @classmethod
    def for_search_path(
        cls,
        search_path: Iterable,
        directory: str = DIRECTORY,
        resolver: Optional[TypeResolver] = None,
        error_policy: ErrorPolicy = ErrorPolicy.FAIL_FAST,
    ) -> "DiscoveryContext":
        """Build a context scanning an explicit list of roots."""
        return cls(
            locator=SearchPathLocator(search_path, directory),
            resolver=resolver or ImportTypeResolver(),
            error_policy=error_policy,
        )


def get_context(context: Optional[DiscoveryContext] = None) -> DiscoveryContext:
    """
    Return the given context, or the ambient default if it is None.

    The default is built per call so changes to sys.path and the environment
    are picked up.
    """
    if context is not None:
        return context
    return DiscoveryContext(error_policy=ErrorPolicy.from_env())
