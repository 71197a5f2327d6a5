"""
Custom exceptions for MONGO_REPO.

Every error raised by the package derives from MongoRepoError, which keeps
backward compatibility with RuntimeError while carrying a context dictionary
(collection name, operation, offending value, etc.) for logging.
"""

from typing import Any, Dict, Optional


class MongoRepoError(RuntimeError):
    """
    Base exception for MONGO_REPO errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection_name,
                 operation, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class MalformedIdError(MongoRepoError, ValueError):
    """
    Raised when a value cannot be parsed as an identifier.

    Attributes:
        message: Error message
        value: The value that failed to parse
    """

    def __init__(self, value: Any, context: Optional[Dict[str, Any]] = None) -> None:
        context = context or {}
        context["value"] = repr(value)
        super().__init__("the provided ID was invalid", context=context)
        self.value = value


class RepositoryError(MongoRepoError):
    """
    Raised when the backing store fails a repository operation.

    The driver exception is always chained as ``__cause__``.

    Attributes:
        message: Error message
        operation: Repository operation that failed (create, find_all, ...)
        collection_name: Collection the operation targeted
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        collection_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the repository error.

        Args:
            message: Error message
            operation: Repository operation that failed
            collection_name: Collection the operation targeted
            context: Additional context information
        """
        context = context or {}
        if operation:
            context["operation"] = operation
        if collection_name:
            context["collection_name"] = collection_name
        super().__init__(message, context=context)
        self.operation = operation
        self.collection_name = collection_name


class TransactionError(MongoRepoError):
    """
    Raised when a transaction session cannot be started or finalized, or
    when a transactional context is used after commit/abort.
    """


class ConfigurationError(MongoRepoError):
    """
    Raised when configuration is invalid or missing.

    This covers environment settings as well as malformed Reposable
    bindings (missing Spec/Patch/Filter classes, mismatched field sets).

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value


class InitializationError(MongoRepoError):
    """
    Raised when the MongoDB client cannot be created or reached.

    Attributes:
        message: Error message
        mongo_uri: MongoDB connection URI (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        mongo_uri: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if mongo_uri:
            context["mongo_uri"] = mongo_uri
        super().__init__(message, context=context)
        self.mongo_uri = mongo_uri
