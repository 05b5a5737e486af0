"""Custom exceptions for the failover proxy.

Expected routing outcomes (a failed origin, an exhausted primary pool, a
duplicate webhook delivery) are modelled as values in
:mod:`failover_proxy.models`. The exceptions here cover the conditions that
are genuinely exceptional: a broken idempotency store and invalid
configuration.

Examples:
    Handling a storage error::

        from failover_proxy.exceptions import StorageError

        try:
            decision = await cache.check_and_record(body)
        except StorageError as e:
            logger.error("idempotency.store_unavailable", error=str(e))
            return json_error("Internal Server Error", 500)
"""


class ProxyError(Exception):
    """Base exception for all proxy errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class StorageError(ProxyError):
    """The idempotency store could not be reached or failed an operation.

    A lookup that fails is never treated as "not seen": accepting a payload
    because the store was down would forward true duplicates. The
    dispatcher turns this error into a 500 response instead.

    Attributes:
        message: Human-readable error description.
        cause: The underlying exception that caused the storage error.

    Examples:
        Raising a storage error::

            try:
                await redis.get(key)
            except RedisError as e:
                raise StorageError(
                    message=f"Failed to read key from Redis: {e}",
                    cause=e,
                ) from e
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        """Initialize the storage error with details.

        Args:
            message: Human-readable error description.
            cause: The underlying exception that caused the storage error.
        """
        super().__init__(message)
        self.cause = cause


class ConfigurationError(ProxyError):
    """An environment variable could not be converted to a config value.

    Attributes:
        message: Human-readable error description.
        variable: Name of the offending environment variable.
    """

    def __init__(self, message: str, variable: str) -> None:
        super().__init__(message)
        self.variable = variable
