"""Cookie jar attached to a URI."""

from collections.abc import Iterator, Mapping


class CookieJar:
    """Ordered name to value mapping; insertion order drives serialisation."""

    def __init__(self, cookies: Mapping[str, str] | None = None) -> None:
        self._cookies: dict[str, str] = {}
        if cookies:
            self.add_cookies(cookies)

    def has_cookies(self) -> bool:
        return len(self._cookies) > 0

    def get_cookies(self) -> dict[str, str]:
        return dict(self._cookies)

    def add_cookie(self, name: str, value: str) -> None:
        """Set a cookie, keeping its original position if it already exists."""
        self._cookies[name] = value

    def add_cookies(self, cookies: Mapping[str, str]) -> None:
        for name, value in cookies.items():
            self.add_cookie(name, value)

    def get_cookie_string(self) -> str:
        """Serialise as ``name=value; `` pairs, trailing separator included."""
        return "".join(f"{name}={value}; " for name, value in self._cookies.items())

    def copy(self) -> "CookieJar":
        return CookieJar(self._cookies)

    def __iter__(self) -> Iterator[str]:
        return iter(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)

    def __repr__(self) -> str:
        return f"CookieJar({self._cookies!r})"
