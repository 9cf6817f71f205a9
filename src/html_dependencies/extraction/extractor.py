"""Reference extraction from a parsed HTML tree."""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from html_dependencies.uri.errors import UriError
from html_dependencies.uri.resolver import create_absolute_url
from html_dependencies.uri.value import Uri

logger = logging.getLogger(__name__)

_FOLLOWABLE_SCHEMES = ("http", "https")
_WHITESPACE = re.compile(r"\s+")


class Category(Enum):
    LINK = "link"
    IMAGE = "image"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"


# category -> (tag, required attributes, attribute holding the reference)
# rel is a token list, so rel="alternate stylesheet" also selects a stylesheet.
_SELECTORS: dict[Category, tuple[str, dict[str, str], str]] = {
    Category.LINK: ("a", {}, "href"),
    Category.IMAGE: ("img", {}, "src"),
    Category.STYLESHEET: ("link", {"rel": "stylesheet"}, "href"),
    Category.SCRIPT: ("script", {}, "src"),
}

# raw attribute value -> resolved URI, in document order
ExtractionResult = dict[str, Uri]


@dataclass(frozen=True)
class CandidateReference:
    raw: str
    category: Category


def is_followable(raw: str) -> bool:
    """Reject ``data:`` URIs and any explicit scheme other than http(s)."""
    if "data:" in raw:
        return False
    try:
        scheme = urlsplit(raw).scheme
    except ValueError:
        return True
    return not scheme or scheme in _FOLLOWABLE_SCHEMES


def repair_url(raw: str) -> str:
    """Trim *raw*; if it spans several lines, drop all of its whitespace."""
    url = raw.strip()
    if "\r" in url or "\n" in url:
        url = _WHITESPACE.sub("", url)
    return url


class ReferenceExtractor:
    """Collects and resolves the URI references of one category at a time."""

    def __init__(
        self,
        soup: BeautifulSoup,
        *,
        repair_urls: bool = False,
        encode_urls: bool = False,
    ) -> None:
        self._soup = soup
        self._repair_urls = repair_urls
        self._encode_urls = encode_urls

    def candidates(self, category: Category) -> Iterator[CandidateReference]:
        tag, attrs, attribute = _SELECTORS[category]
        for element in self._soup.find_all(tag, attrs=attrs):
            value = element.get(attribute)
            if value is None:
                continue
            yield CandidateReference(raw=str(value), category=category)

    def base_href(self) -> str | None:
        """Return the ``href`` of ``<head><base>``, if the document has one."""
        head = self._soup.head
        if head is None:
            return None
        base = head.find("base", href=True)
        if base is None:
            return None
        return str(base["href"])

    def extract(self, category: Category, origin: Uri | None = None) -> ExtractionResult:
        """Resolve every followable reference of *category* against *origin*.

        Candidates that fail to parse or resolve are dropped.
        """
        result: ExtractionResult = {}
        for candidate in self.candidates(category):
            raw = candidate.raw
            if raw in result or not is_followable(raw):
                continue

            url = repair_url(raw) if self._repair_urls else raw
            try:
                uri = Uri.parse(url, encode=self._encode_urls)
                if origin is not None:
                    uri = create_absolute_url(uri, origin)
            except UriError as exc:
                logger.debug("Dropping %s reference %r: %s", category.value, raw, exc)
                continue

            result[raw] = uri
        return result
