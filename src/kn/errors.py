"""
Exception types for the kn client library.

Server errors are classified once, in ``get_error``, so that command code can
catch the taxonomy below instead of inspecting raw ``ApiException`` objects.
"""
import json
from typing import Optional

from kubernetes.client.exceptions import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import HTTPError as Urllib3HTTPError


class KnError(Exception):
    """Base exception for all kn client errors."""
    pass


class ValidationError(KnError):
    """Raised for bad user input: missing flags, malformed references, bad output formats."""
    pass


class NotFoundError(KnError):
    """Raised when the server reports that a resource does not exist."""
    pass


class ConflictError(KnError):
    """Raised when an update lost a resource version race."""
    pass


class ForbiddenError(KnError):
    """Raised when the caller is not authorized for an operation."""
    pass


class TransportError(KnError):
    """Raised for network, TLS or decoding failures."""
    pass


class KubeConfigError(TransportError):
    """Raised when the Kubernetes configuration cannot be loaded."""
    pass


class WaitTimeoutError(KnError):
    """Raised when a resource does not become ready in time."""
    pass


class WaitCancelledError(KnError):
    """Raised when a wait loop is cancelled by the caller."""
    pass


def _status_message(exc: ApiException) -> str:
    body = getattr(exc, "body", None)
    if body:
        try:
            status = json.loads(body)
        except (TypeError, ValueError):
            status = None
        if isinstance(status, dict) and status.get("message"):
            return status["message"]
    return exc.reason or f"HTTP {exc.status}"


def get_error(err: Exception) -> Exception:
    """
    Translates a client library exception into the kn error taxonomy.

    Errors that are already ``KnError`` instances, or that cannot be
    classified, are returned unchanged.
    """
    if isinstance(err, KnError):
        return err
    if isinstance(err, ApiException):
        message = _status_message(err)
        if err.status == 404:
            return NotFoundError(message)
        if err.status == 409:
            return ConflictError(message)
        if err.status == 403:
            return ForbiddenError(message)
        if err.status in (0, None):
            return TransportError(message)
        return KnError(message)
    if isinstance(err, ConfigException):
        return KubeConfigError(str(err))
    if isinstance(err, (Urllib3HTTPError, ConnectionError)):
        return TransportError(str(err))
    return err


def is_not_found(err: Optional[Exception]) -> bool:
    return isinstance(err, NotFoundError) or (
        isinstance(err, ApiException) and err.status == 404
    )


def is_conflict(err: Optional[Exception]) -> bool:
    return isinstance(err, ConflictError) or (
        isinstance(err, ApiException) and err.status == 409
    )


def is_forbidden(err: Optional[Exception]) -> bool:
    return isinstance(err, ForbiddenError) or (
        isinstance(err, ApiException) and err.status == 403
    )


def operation_error(
    verb: str, kind: str, name: str, namespace: str, cause: Exception
) -> KnError:
    """Wraps ``cause`` in a user facing message, keeping its error class."""
    message = (
        f"cannot {verb} {kind} '{name}' in namespace '{namespace}' because: {cause}"
    )
    cls = type(cause) if isinstance(cause, KnError) else KnError
    return cls(message)
