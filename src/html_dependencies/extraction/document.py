"""HTML document facade: images, stylesheets, scripts, links and their union."""

import hashlib
import logging
import re
from collections.abc import Callable
from typing import Generic, TypeVar

from bs4 import BeautifulSoup

from html_dependencies.extraction.extractor import (
    Category,
    ExtractionResult,
    ReferenceExtractor,
)
from html_dependencies.uri.errors import UriError
from html_dependencies.uri.resolver import is_equal_domain
from html_dependencies.uri.value import Uri

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Non-greedy and applied once per match; nested or unterminated blocks survive.
_SCRIPT_BLOCK = re.compile(r"<script.*?</script>", re.DOTALL | re.IGNORECASE)


def remove_script_tags(html: str) -> str:
    """Strip ``<script>...</script>`` blocks from *html*."""
    return _SCRIPT_BLOCK.sub("", html)


class _Once(Generic[T]):
    """Write-once cell; the first caller's value is kept for good."""

    def __init__(self) -> None:
        self._value: T | None = None
        self._filled = False

    def get(self, compute: Callable[[], T]) -> T:
        if not self._filled:
            self._value = compute()
            self._filled = True
        return self._value  # type: ignore[return-value]


class Document:
    """URI references found in one HTML document.

    Each category is resolved once, against the origin of the first call that
    asks for it; later calls return that result whatever origin they pass.
    Instances are not safe to share between threads before every cache has
    been filled.
    """

    def __init__(
        self,
        html: str,
        repair_urls: bool = False,
        *,
        encode_urls: bool = False,
    ) -> None:
        self._extractor = ReferenceExtractor(
            BeautifulSoup(html, "html.parser"),
            repair_urls=repair_urls,
            encode_urls=encode_urls,
        )
        self._categories: dict[Category, _Once[ExtractionResult]] = {
            category: _Once() for category in Category
        }
        self._dependencies: _Once[ExtractionResult] = _Once()

    def _effective_origin(self, origin: Uri | None) -> Uri | None:
        href = self._extractor.base_href()
        if href is None:
            return origin
        try:
            if href.startswith("/"):
                return origin.with_path(href) if origin is not None else None
            if href.startswith("http"):
                return Uri.parse(href)
        except UriError as exc:
            logger.warning("Ignoring <base href=%r>: %s", href, exc)
        return origin

    def _get(self, category: Category, origin: Uri | None) -> ExtractionResult:
        return self._categories[category].get(
            lambda: self._extractor.extract(category, self._effective_origin(origin))
        )

    def get_images(self, origin: Uri | None = None) -> list[Uri]:
        return list(self._get(Category.IMAGE, origin).values())

    def get_css_files(self, origin: Uri | None = None) -> list[Uri]:
        return list(self._get(Category.STYLESHEET, origin).values())

    def get_js_files(self, origin: Uri | None = None) -> list[Uri]:
        return list(self._get(Category.SCRIPT, origin).values())

    def get_outgoing_links(
        self, origin: Uri | None = None, include_external: bool = True
    ) -> list[Uri]:
        """Return the ``<a href>`` targets.

        With ``include_external=False`` only links sharing the registrable
        domain of *origin* are kept; *origin* is then required.
        """
        links = list(self._get(Category.LINK, origin).values())
        if include_external:
            return links
        if origin is None:
            raise ValueError("origin is required to filter out external links")
        return [link for link in links if is_equal_domain(link, origin)]

    def get_dependencies(
        self,
        origin: Uri | None = None,
        include_links: bool = True,
        include_assets: bool = True,
    ) -> list[Uri]:
        """Return links, then images, stylesheets and scripts.

        The flags of the first call decide the cached result.
        """
        return list(
            self._dependencies.get(
                lambda: self._collect(origin, include_links, include_assets)
            ).values()
        )

    def _collect(
        self, origin: Uri | None, include_links: bool, include_assets: bool
    ) -> ExtractionResult:
        categories: list[Category] = []
        if include_links:
            categories.append(Category.LINK)
        if include_assets:
            categories.extend((Category.IMAGE, Category.STYLESHEET, Category.SCRIPT))

        dependencies: ExtractionResult = {}
        for category in categories:
            for raw, uri in self._get(category, origin).items():
                dependencies.setdefault(raw, uri)
        return dependencies

    def get_unordered_dependencies(
        self,
        origin: Uri | None = None,
        include_links: bool = True,
        include_assets: bool = True,
    ) -> list[Uri]:
        """Return the dependencies shuffled into MD5 order of their string form."""
        return sorted(
            self.get_dependencies(origin, include_links, include_assets),
            key=lambda uri: hashlib.md5(str(uri).encode("utf-8")).hexdigest(),
        )
