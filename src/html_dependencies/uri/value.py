"""Immutable URI value type."""

import re
import string
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Self
from urllib.parse import quote, urlsplit

from html_dependencies.uri.cookies import CookieJar
from html_dependencies.uri.errors import InvalidArgument, InvalidUri

DEFAULT_PORTS: dict[str, int] = {
    "http": 80,
    "https": 443,
}

_UNRESERVED = frozenset(string.ascii_letters + string.digits + "_-.~")
_SUB_DELIMS = frozenset("!$&'()*+,;=")
_PATH_CHARS = _UNRESERVED | frozenset(":@&=+$,/;")
_QUERY_CHARS = _UNRESERVED | _SUB_DELIMS | frozenset(":@/?")
_HEX_DIGITS = frozenset(string.hexdigits)

_SCHEME_SUFFIX = re.compile(r":(//)?$")
_HOST_PORT = re.compile(r"^(?P<host>\[[^\]]*\]|[^:]*)(?::(?P<port>[0-9]*))?$")
_AUTHORITY_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://[^/?#]*")
# urlsplit silently deletes these; encode them so the character classes see them.
_SPLIT_UNSAFE = str.maketrans({"\t": "%09", "\r": "%0D", "\n": "%0A"})


def _percent_encode(value: str, allowed: frozenset[str]) -> str:
    """Encode every character outside *allowed*, keeping valid ``%XX`` escapes.

    Already encoded input passes through unchanged.
    """
    encoded: list[str] = []
    for index, char in enumerate(value):
        if char in allowed:
            encoded.append(char)
        elif char == "%" and _is_escape(value[index + 1 : index + 3]):
            encoded.append(char)
        else:
            encoded.extend(f"%{byte:02X}" for byte in char.encode("utf-8"))
    return "".join(encoded)


def _is_escape(pair: str) -> bool:
    return len(pair) == 2 and all(char in _HEX_DIGITS for char in pair)


def _filter_scheme(scheme: str) -> str:
    scheme = _SCHEME_SUFFIX.sub("", scheme.lower())
    if scheme and scheme not in DEFAULT_PORTS:
        raise InvalidArgument(
            f'Unsupported scheme "{scheme}"; must be empty or one of '
            f"({', '.join(DEFAULT_PORTS)})"
        )
    return scheme


def _check_port(port: int | None) -> None:
    if port is None:
        return
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidArgument(f"Invalid port {port!r}; must be an integer")
    if not 1 <= port <= 65535:
        raise InvalidArgument(f"Invalid port {port}; must be a valid TCP/UDP port")


def encode_url(url: str) -> str:
    """Percent-encode a raw URL string, leaving ``/?&=#%`` and the authority alone."""
    match = _AUTHORITY_PREFIX.match(url)
    prefix = match.group(0) if match else ""
    return prefix + quote(url[len(prefix) :], safe="/?&=#%")


@dataclass(frozen=True)
class Uri:
    """A URI restricted to the ``http``/``https``/empty schemes.

    Path, query and fragment are stored percent-encoded. Every ``with_*``
    method returns a new instance. The attached cookie jar and session
    identifier travel with the URI but take no part in equality.

    A URI with a host but no scheme renders as ``//authority/path`` so the
    string parses back to the same value; the bare ``authority/path`` form
    would read as a relative path.
    """

    scheme: str = ""
    user_info: str = ""
    host: str = ""
    port: int | None = None
    path: str = ""
    query: str = ""
    fragment: str = ""
    cookie_jar: CookieJar = field(default_factory=CookieJar, compare=False, repr=False)
    session_identifier: str | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        _check_port(self.port)
        if "?" in self.path:
            raise InvalidArgument("Invalid path provided; must not contain a query string")
        if "#" in self.path:
            raise InvalidArgument("Invalid path provided; must not contain a URI fragment")
        if "#" in self.query:
            raise InvalidArgument("Query string must not include a URI fragment")
        object.__setattr__(self, "scheme", _filter_scheme(self.scheme))
        object.__setattr__(self, "path", _percent_encode(self.path, _PATH_CHARS))
        object.__setattr__(self, "query", _percent_encode(self.query, _QUERY_CHARS))
        object.__setattr__(
            self, "fragment", _percent_encode(self.fragment, _QUERY_CHARS)
        )

    @classmethod
    def parse(cls, uri: str, encode: bool = False) -> Self:
        """Decompose *uri* into its parts.

        Raises ``InvalidUri`` when the string is malformed or carries a scheme
        other than ``http``/``https``.
        """
        if encode:
            uri = encode_url(uri)
        if not uri:
            return cls()

        try:
            parts = urlsplit(uri.translate(_SPLIT_UNSAFE))
        except ValueError as exc:
            raise InvalidUri(
                f"The source URI string appears to be malformed: {uri!r}"
            ) from exc

        user_info, _, host_port = parts.netloc.rpartition("@")
        match = _HOST_PORT.match(host_port)
        if match is None:
            raise InvalidUri(f"Cannot split host and port in {uri!r}")
        port = match.group("port")

        try:
            return cls(
                scheme=parts.scheme,
                user_info=user_info,
                host=match.group("host"),
                port=int(port) if port else None,
                path=parts.path,
                query=parts.query,
                fragment=parts.fragment,
            )
        except InvalidArgument as exc:
            raise InvalidUri(f"Cannot parse {uri!r}: {exc}") from exc

    def __str__(self) -> str:
        return self._canonical

    @cached_property
    def _canonical(self) -> str:
        uri = ""
        if self.scheme:
            uri += f"{self.scheme}://"

        authority = self.get_authority()
        if authority:
            if not self.scheme:
                uri += "//"
            uri += authority

        if self.path:
            uri += self.path if self.path.startswith("/") else f"/{self.path}"
        if self.query:
            uri += f"?{self.query}"
        if self.fragment:
            uri += f"#{self.fragment}"
        return uri

    def _has_non_standard_port(self) -> bool:
        # Without a scheme the authority is all there is, so any port is kept.
        if not self.scheme:
            return True
        if not self.host or not self.port:
            return False
        return self.port != DEFAULT_PORTS[self.scheme]

    def get_scheme(self) -> str:
        return self.scheme

    def get_authority(self) -> str:
        if not self.host:
            return ""
        authority = self.host
        if self.user_info:
            authority = f"{self.user_info}@{authority}"
        if self.port is not None and self._has_non_standard_port():
            authority += f":{self.port}"
        return authority

    def get_user_info(self) -> str:
        return self.user_info

    def get_host(self, depth: int | None = None) -> str:
        """Return the host, or only its rightmost *depth* labels.

        >>> Uri.parse("http://a.b.c.com").get_host(2)
        'c.com'
        """
        if not depth:
            return self.host
        return ".".join(self.host.split(".")[-depth:])

    def get_port(self) -> int | None:
        """Return the port only when it differs from the scheme's default."""
        return self.port if self._has_non_standard_port() else None

    def get_path(self) -> str:
        return self.path

    def get_query(self) -> str:
        return self.query

    def get_fragment(self) -> str:
        return self.fragment

    def get_session_identifier(self) -> str | None:
        return self.session_identifier

    def _derive(self, **changes: object) -> Self:
        return replace(self, cookie_jar=self.cookie_jar.copy(), **changes)

    def with_scheme(self, scheme: str) -> Self:
        return self._derive(scheme=scheme)

    def with_user_info(self, user: str, password: str | None = None) -> Self:
        info = f"{user}:{password}" if password else user
        return self._derive(user_info=info)

    def with_host(self, host: str) -> Self:
        return self._derive(host=host)

    def with_port(self, port: int | str) -> Self:
        if isinstance(port, str):
            if not port.isdigit():
                raise InvalidArgument(
                    f"Invalid port {port!r}; must be an integer or integer string"
                )
            port = int(port)
        return self._derive(port=port)

    def with_path(self, path: str) -> Self:
        return self._derive(path=path)

    def with_query(self, query: str) -> Self:
        return self._derive(query=query.removeprefix("?"))

    def with_fragment(self, fragment: str) -> Self:
        return self._derive(fragment=fragment.removeprefix("#"))

    def with_session_identifier(self, identifier: str | None) -> Self:
        return self._derive(session_identifier=identifier)

    def has_cookies(self) -> bool:
        return self.cookie_jar.has_cookies()

    def get_cookies(self) -> dict[str, str]:
        return self.cookie_jar.get_cookies()

    def add_cookie(self, name: str, value: str) -> None:
        self.cookie_jar.add_cookie(name, value)

    def add_cookies(self, cookies: dict[str, str]) -> None:
        self.cookie_jar.add_cookies(cookies)

    def get_cookie_string(self) -> str:
        return self.cookie_jar.get_cookie_string()
