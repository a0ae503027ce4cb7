"""Exceptions for provider-registry."""


class RegistryError(Exception):
    """Base exception for provider discovery errors."""
    pass


class ResourceAccessError(RegistryError):
    """Exception raised when a registry resource can't be located, opened or read."""

    def __init__(self, message: str, resource=None):
        super().__init__(message)
        self.resource = resource


class TypeResolutionError(RegistryError):
    """Exception raised when a provider name doesn't resolve to any type."""

    def __init__(self, name: str, resource=None, reason: str = "is not found"):
        super().__init__(f'Service provider "{name}" {reason} ({resource})')
        self.name = name
        self.resource = resource


class TypeMismatchError(RegistryError):
    """Exception raised when a resolved provider doesn't implement its category."""

    def __init__(self, name: str, resource, category: type):
        super().__init__(
            f'Service provider "{name}" should implement '
            f"{category.__module__}.{category.__qualname__} ({resource})"
        )
        self.name = name
        self.resource = resource
        self.category = category


class InstantiationError(RegistryError):
    """
    Exception raised when a provider class can't be instantiated.

    The original failure is kept as ``__cause__``.
    """

    def __init__(self, name: str, resource=None):
        super().__init__(f'Can\'t instantiate "{name}" service provider ({resource})')
        self.name = name
        self.resource = resource
