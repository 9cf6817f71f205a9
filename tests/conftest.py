from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def referenced_urls_html() -> str:
    return (FIXTURES / "referenced_urls.html").read_text(encoding="utf-8")
