"""Extraction defaults loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionSettings(BaseSettings):
    """Defaults for the CLI's ``--repair`` and ``--encode`` switches."""

    model_config = SettingsConfigDict(env_prefix="HTML_DEPS_")

    repair_urls: bool = False
    encode_urls: bool = False
