"""Domain errors raised by the catalog services.

Every error a caller can act on derives from CatalogError. Persistence
failures other than duplicate keys are not wrapped and reach the caller as
botocore errors.
"""


class CatalogError(Exception):
    """Base class for catalog errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CatalogError):
    """Referenced entity is absent or not visible in the restaurant scope."""


class InvalidReferenceError(CatalogError):
    """A foreign identifier is malformed, foreign, deleted or inactive."""


class InvalidPriceError(CatalogError):
    """A monetary value converts outside its allowed cent range."""


class InvalidRulesError(CatalogError):
    """Modifier group selection constraints are violated."""


class DuplicateNameError(CatalogError):
    """A name collides with an existing one in the same scope."""
