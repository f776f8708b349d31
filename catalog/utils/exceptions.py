"""Custom exception classes for the application."""


class BaseAppException(Exception):
    """Base exception class for all application exceptions."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ProductNotFoundError(BaseAppException):
    """Raised when a mutation targets a product id that is not in the catalog."""

    def __init__(self, product_id: str, details: dict = None):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}", details)


class SourceUnavailableError(BaseAppException):
    """Raised when no data source could provide a baseline collection."""
    pass


class RemoteFetchError(BaseAppException):
    """Raised when the remote products endpoint fails or returns a bad body."""
    pass


class PersistenceError(BaseAppException):
    """Raised when writing the catalog to the durable store fails."""
    pass


class StorageBackendError(BaseAppException):
    """Raised by a key-value backend when a read or write cannot complete."""
    pass


class StorageUnavailableError(StorageBackendError):
    """Raised when the durable store cannot be accessed at all."""
    pass


class InvalidQueryError(BaseAppException):
    """Raised when a catalog query has inconsistent filters or paging."""
    pass


class ConfigurationError(BaseAppException):
    """Raised when there's a configuration error."""
    pass
