from html_dependencies.extraction.settings import ExtractionSettings


class TestExtractionSettings:
    def test_defaults(self):
        settings = ExtractionSettings()

        assert settings.repair_urls is False
        assert settings.encode_urls is False

    def test_env_enables_repair(self, monkeypatch):
        monkeypatch.setenv("HTML_DEPS_REPAIR_URLS", "true")

        assert ExtractionSettings().repair_urls is True

    def test_env_enables_encoding(self, monkeypatch):
        monkeypatch.setenv("HTML_DEPS_ENCODE_URLS", "1")

        assert ExtractionSettings().encode_urls is True
