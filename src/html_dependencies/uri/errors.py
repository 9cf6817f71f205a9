"""Errors raised while parsing, deriving and inspecting URIs."""

from enum import Enum


class ErrorKind(Enum):
    INVALID_URI = "invalid_uri"
    INVALID_ARGUMENT = "invalid_argument"
    NO_CREDENTIALS = "no_credentials"


class UriError(Exception):
    """Base class for URI errors; ``kind`` tells them apart without isinstance."""

    kind: ErrorKind


class InvalidUri(UriError, ValueError):
    """Raised when a source string cannot be decomposed into a URI."""

    kind = ErrorKind.INVALID_URI


class InvalidArgument(UriError, ValueError):
    """Raised when a scheme, port, path or query is rejected."""

    kind = ErrorKind.INVALID_ARGUMENT


class NoCredentials(UriError, LookupError):
    """Raised when basic auth credentials are requested from a URI without them."""

    kind = ErrorKind.NO_CREDENTIALS
