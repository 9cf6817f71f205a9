import logging

import pytest
from bs4 import BeautifulSoup

from html_dependencies.extraction.extractor import (
    CandidateReference,
    Category,
    ReferenceExtractor,
    is_followable,
    repair_url,
)
from html_dependencies.uri.value import Uri

ORIGIN = Uri.parse("http://www.example.com/test/")


def make_extractor(html: str, **kwargs: bool) -> ReferenceExtractor:
    return ReferenceExtractor(BeautifulSoup(html, "html.parser"), **kwargs)


def extract_strings(html: str, category: Category, origin: Uri | None = ORIGIN, **kwargs):
    result = make_extractor(html, **kwargs).extract(category, origin)
    return {raw: str(uri) for raw, uri in result.items()}


class TestIsFollowable:
    @pytest.mark.parametrize(
        "raw",
        [
            "data:image/png;base64,AAA",
            "javascript:alert(1)",
            "mailto:info@example.com",
            "tel:+441234567890",
            "ftp://example.com/file",
            "/img?src=data:foo",
        ],
    )
    def test_rejects(self, raw):
        assert not is_followable(raw)

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "/relative/path",
            "relative.html",
            "?cat=1",
            "//cdn.example.com/x.js",
            "http://example.com",
            "https://example.com",
            "HTTPS://example.com",
        ],
    )
    def test_accepts(self, raw):
        assert is_followable(raw)

    def test_unparsable_string_counts_as_schemeless(self):
        assert is_followable("http://[::1")


class TestRepairUrl:
    def test_trims_whitespace(self):
        assert repair_url("  /a b.html \t") == "/a b.html"

    def test_removes_all_whitespace_across_lines(self):
        assert repair_url(" /images/\n   logo.png ") == "/images/logo.png"

    def test_carriage_return_triggers_removal(self):
        assert repair_url("/a b\r/c") == "/ab/c"


class TestCandidates:
    def test_selects_by_category(self):
        html = """<html><head>
            <link rel="stylesheet" href="/site.css">
            <link rel="icon" href="/favicon.ico">
            <script src="/app.js"></script>
            <script>inline()</script>
        </head><body>
            <a href="/about">About</a>
            <a name="top">Anchor</a>
            <img src="/logo.png">
        </body></html>"""
        extractor = make_extractor(html)

        assert list(extractor.candidates(Category.LINK)) == [
            CandidateReference(raw="/about", category=Category.LINK)
        ]
        assert [c.raw for c in extractor.candidates(Category.IMAGE)] == ["/logo.png"]
        assert [c.raw for c in extractor.candidates(Category.STYLESHEET)] == ["/site.css"]
        assert [c.raw for c in extractor.candidates(Category.SCRIPT)] == ["/app.js"]

    def test_matches_stylesheet_as_one_rel_token(self):
        html = """
            <link rel="alternate stylesheet" href="/dark.css">
            <link rel="preload" href="/font.woff2">
            <link rel="stylesheets" href="/typo.css">
        """

        extractor = make_extractor(html)

        assert [c.raw for c in extractor.candidates(Category.STYLESHEET)] == ["/dark.css"]

    def test_keeps_empty_attribute(self):
        extractor = make_extractor('<a href="">Self</a>')

        assert [c.raw for c in extractor.candidates(Category.LINK)] == [""]

    def test_base_href(self):
        extractor = make_extractor('<html><head><base href="/sub/"></head></html>')

        assert extractor.base_href() == "/sub/"

    def test_base_href_missing(self):
        assert make_extractor("<html><head></head></html>").base_href() is None

    def test_base_href_outside_head_is_ignored(self):
        assert make_extractor('<body><base href="/sub/"></body>').base_href() is None


class TestExtract:
    def test_resolves_against_origin(self):
        html = '<a href="page.html">Page</a><a href="/root.html">Root</a>'

        assert extract_strings(html, Category.LINK) == {
            "page.html": "http://www.example.com/test/page.html",
            "/root.html": "http://www.example.com/root.html",
        }

    def test_without_origin_keeps_references_unresolved(self):
        html = '<img src="/logo.png"><img src="//cdn.example.com/a.png">'

        assert extract_strings(html, Category.IMAGE, origin=None) == {
            "/logo.png": "/logo.png",
            "//cdn.example.com/a.png": "//cdn.example.com/a.png",
        }

    def test_empty_href_resolves_to_origin(self):
        assert extract_strings('<a href="">Self</a>', Category.LINK) == {
            "": "http://www.example.com/test/"
        }

    def test_filters_non_followable_references(self):
        html = """
            <a href="javascript:void(0)">JS</a>
            <a href="mailto:info@example.com">Mail</a>
            <a href="data:text/html,hi">Data</a>
            <a href="/kept">Kept</a>
        """

        assert list(extract_strings(html, Category.LINK)) == ["/kept"]

    def test_deduplicates_by_raw_string(self):
        html = '<a href="/a">1</a><a href="/a">2</a><a href="/b/../a">3</a>'

        result = extract_strings(html, Category.LINK)

        assert result == {
            "/a": "http://www.example.com/a",
            "/b/../a": "http://www.example.com/a",
        }

    def test_preserves_document_order(self):
        html = '<img src="/c.png"><img src="/a.png"><img src="/b.png">'

        assert list(extract_strings(html, Category.IMAGE)) == [
            "/c.png",
            "/a.png",
            "/b.png",
        ]

    def test_drops_unparsable_candidates(self, caplog):
        html = (
            '<a href="http://example.com:99999/">Bad port</a>'
            '<a href="http://[::1/x">Bad host</a>'
            '<a href="/good">Good</a>'
        )

        with caplog.at_level(logging.DEBUG):
            result = extract_strings(html, Category.LINK)

        assert result == {"/good": "http://www.example.com/good"}
        assert "Dropping link reference" in caplog.text

    def test_repair_is_keyed_by_raw_string(self):
        raw = " /images/\n   logo.png "
        html = f'<img src="{raw}">'

        result = extract_strings(html, Category.IMAGE, repair_urls=True)

        assert result == {raw: "http://www.example.com/images/logo.png"}

    def test_encode_urls(self):
        html = '<img src="/my images/ü.png">'

        result = extract_strings(html, Category.IMAGE, encode_urls=True)

        assert result == {
            "/my images/ü.png": "http://www.example.com/my%20images/%C3%BC.png"
        }

    def test_stylesheet_query_string_is_kept(self):
        html = '<link rel="stylesheet" href="http://fonts.googleapis.com/css?family=Dancing+Script">'

        assert list(extract_strings(html, Category.STYLESHEET).values()) == [
            "http://fonts.googleapis.com/css?family=Dancing+Script"
        ]

    def test_keeps_encoded_newline_without_repair(self):
        html = '<img src="/a\nb.png">'

        assert extract_strings(html, Category.IMAGE) == {
            "/a\nb.png": "http://www.example.com/a%0Ab.png"
        }
