"""Resolve references against an origin the way a browser does."""

import re
from typing import NamedTuple

from html_dependencies.uri.errors import NoCredentials
from html_dependencies.uri.value import Uri

# A "segment/../" pair; ".." itself is never a segment that can be collapsed.
_PARENT_SEGMENT = re.compile(r"(?<![^/])(?!\.\./)[^/]+/\.\./")
_BASIC_AUTH = re.compile(r"://(.*):(.*)@")


class BasicAuthCredentials(NamedTuple):
    username: str
    password: str


def create_absolute_url(reference: Uri, origin: Uri) -> Uri:
    """Resolve *reference* against *origin* and return an absolute URI.

    Cases are tried in order:

    * empty or fragment-only reference: the origin itself
    * query-only reference (``?cat=1``): origin path with the new query
    * reference with a scheme: the reference as-is
    * protocol-relative reference (``//cdn.example.com/x``): origin scheme
    * absolute path: origin scheme and host
    * relative path: appended to the origin's directory

    Only the host and a non-standard port are carried over; user info is
    never copied into the result.

    Raises ``InvalidUri`` when the assembled URI cannot be parsed.
    """
    reference_string = str(reference)
    if not reference_string or reference_string.startswith("#"):
        return origin

    if reference_string.startswith("?"):
        return Uri.parse(
            f"{origin.scheme}://{_host_port(origin)}{origin.path}{reference_string}"
        )

    if reference.scheme:
        return remove_dot_segments(reference)

    query = f"?{reference.query}" if reference.query else ""
    if reference.host:
        authority = _host_port(reference)
        path = reference.path
    else:
        authority = _host_port(origin)
        if reference.path.startswith("/"):
            path = reference.path
        else:
            path = _directory(origin.path) + reference.path

    return remove_dot_segments(Uri.parse(f"{origin.scheme}://{authority}{path}{query}"))


def _host_port(uri: Uri) -> str:
    port = uri.get_port()
    return f"{uri.host}:{port}" if port else uri.host


def _directory(path: str) -> str:
    if path.endswith("/"):
        return path
    slash = path.rfind("/")
    if slash == -1:
        return "/"
    return path[: slash + 1]


def remove_dot_segments(uri: Uri) -> Uri:
    """Collapse every ``segment/../`` pair in the path (``/a/b/../c`` -> ``/a/c``)."""
    path = uri.path
    count = 1
    while count:
        path, count = _PARENT_SEGMENT.subn("", path)
    return uri.with_path(path)


def get_domain(uri: Uri) -> str:
    """Return the last two host labels.

    This is a heuristic and knows nothing about public suffixes:
    ``a.example.co.uk`` and ``b.other.co.uk`` share the domain ``co.uk``.
    """
    return uri.get_host(2)


def is_equal_domain(first: Uri, second: Uri) -> bool:
    return get_domain(first) == get_domain(second)


def get_subdomain(uri: Uri) -> str:
    """Return every host label except the last two."""
    return ".".join(uri.host.split(".")[:-2])


def is_basic_auth(uri: Uri) -> bool:
    return _BASIC_AUTH.search(str(uri)) is not None


def get_basic_auth_credentials(uri: Uri) -> BasicAuthCredentials:
    match = _BASIC_AUTH.search(str(uri))
    if match is None:
        raise NoCredentials(f"No basic auth credentials in {uri}")
    return BasicAuthCredentials(username=match.group(1), password=match.group(2))
