"""
Custom exception hierarchy for StayScout.

Provides a structured exception hierarchy for different error scenarios:
- AppException: Base for all application errors
- ConfigError: Configuration-related errors
- AcquisitionError: Errors raised while fetching listing data

Each exception includes:
- Descriptive message
- Optional error code for programmatic handling
- Optional context dictionary for debugging

Acquisition errors additionally name the operation and the offending
identifier (listing id or search location) so a caller can decide whether
to retry, adjust parameters, or give up.

Example:
    >>> from src.utils.exceptions import NotFoundError
    >>> raise NotFoundError("listing does not exist", operation="detail", identifier="123")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


# ============================================
# Base Exception
# ============================================


class AppException(Exception):
    """
    Base exception for all StayScout application errors.

    Attributes:
        message: Human-readable error description.
        code: Optional error code for programmatic handling.
        context: Optional dictionary with debugging context.

    Example:
        >>> try:
        ...     raise AppException("Something went wrong", code="APP_001")
        ... except AppException as e:
        ...     print(f"Error {e.code}: {e.message}")
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self._default_code()
        self.context = context or {}
        super().__init__(self.message)

    def _default_code(self) -> str:
        """Generate default error code from class name."""
        # CamelCase -> UPPER_SNAKE_CASE
        name = self.__class__.__name__
        code = ""
        for i, char in enumerate(name):
            if char.isupper() and i > 0:
                code += "_"
            code += char.upper()
        return code

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
        }


# ============================================
# Configuration Errors
# ============================================


class ConfigError(AppException):
    """
    Base exception for configuration-related errors.

    Raised when there are issues with:
    - Loading configuration files
    - Parsing YAML
    - Validating configuration values
    """

    pass


class ConfigFileNotFoundError(ConfigError):
    """
    Raised when an explicitly requested configuration file is not found.

    Example:
        >>> raise ConfigFileNotFoundError(path="/path/to/config.yaml")
    """

    def __init__(
        self,
        message: str = "Configuration file not found",
        path: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        super().__init__(message, code="CONFIG_FILE_NOT_FOUND", context=context, **kwargs)


class ConfigurationError(ConfigError):
    """
    Raised when configuration is invalid or cannot be parsed.

    Example:
        >>> raise ConfigurationError(
        ...     "requests_per_second must be positive",
        ...     context={"value": -1}
        ... )
    """

    def __init__(
        self,
        message: str = "Invalid configuration",
        **kwargs,
    ) -> None:
        super().__init__(message, code="CONFIG_INVALID", **kwargs)


# ============================================
# Acquisition Errors
# ============================================


class AcquisitionError(AppException):
    """
    Base exception for failures while acquiring listing data.

    The message is prefixed with the operation and identifier so that
    every surfaced error names what was being fetched.

    Attributes:
        operation: Operation name (search, detail, reviews, ...).
        identifier: Listing id or search location, when known.
        kind: Short error kind (auth, rate_limited, not_found, ...).
    """

    kind: str = "acquisition"

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        identifier: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.operation = operation
        self.identifier = identifier
        self.reason = message

        context = dict(context or {})
        context["kind"] = self.kind
        if operation:
            context["operation"] = operation
        if identifier:
            context["identifier"] = identifier

        super().__init__(self._compose(message), code=code, context=context)

    def _compose(self, message: str) -> str:
        prefix = self.kind
        if self.operation:
            prefix = f"{self.operation} {prefix}"
        if self.identifier:
            prefix = f"{prefix} for {self.identifier!r}"
        return f"{prefix}: {message}"


class AuthError(AcquisitionError):
    """
    Raised when the access token for the structured endpoint could not be
    fetched or located in the entry page.
    """

    kind = "auth"


class RateLimitedError(AcquisitionError):
    """
    Raised when the upstream explicitly throttled a request (HTTP 429).

    Example:
        >>> raise RateLimitedError("HTTP 429", operation="search", retry_after=30)
    """

    kind = "rate_limited"

    def __init__(
        self,
        message: str = "upstream throttled the request",
        retry_after: Optional[float] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if retry_after is not None:
            context["retry_after"] = retry_after
        self.retry_after = retry_after
        super().__init__(message, context=context, **kwargs)


class NotFoundError(AcquisitionError):
    """Raised when the requested resource does not exist. Never retried."""

    kind = "not_found"


class ParseError(AcquisitionError):
    """
    Raised when no extraction tier succeeded or a structured response has
    an unrecognized shape.

    Only the document size is recorded, never the document itself.
    """

    kind = "parse"

    def __init__(
        self,
        message: str,
        document_size: Optional[int] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if document_size is not None:
            context["document_size"] = document_size
            message = f"{message} (document size {document_size} bytes)"
        self.document_size = document_size
        super().__init__(message, context=context, **kwargs)


class TransportError(AcquisitionError):
    """
    Raised on network failures, timeouts and non-success HTTP statuses
    that are neither 404 nor 429.
    """

    kind = "transport"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if status is not None:
            context["status"] = status
        self.status = status
        super().__init__(message, context=context, **kwargs)


class ValidationError(AcquisitionError):
    """
    Raised when caller-supplied parameters are malformed.

    Always raised before any network activity.

    Example:
        >>> raise ValidationError("checkout must be after checkin", field="checkout")
    """

    kind = "validation"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs,
    ) -> None:
        context = kwargs.pop("context", {})
        if field:
            context["field"] = field
        self.field = field
        super().__init__(message, context=context, **kwargs)
