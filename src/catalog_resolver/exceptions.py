class CatalogResolverError(Exception):
    """Base exception for the catalog resolver."""


class ConfigurationError(CatalogResolverError):
    """Raised when configuration is missing or invalid."""


class LookupUnavailableError(CatalogResolverError):
    """Raised by a lookup provider when the catalog store cannot be queried."""


class DuplicateModelError(CatalogResolverError):
    """Raised when a tenant already has an item with the same normalized model."""


class CatalogItemNotFoundError(CatalogResolverError):
    """Raised when an item id does not exist for the tenant."""


class ServiceNotInitializedError(CatalogResolverError):
    """Raised when the app is used before initialize()."""


class ItemTenantConflictError(CatalogResolverError):
    """Raised when an item id is already used by another tenant."""
