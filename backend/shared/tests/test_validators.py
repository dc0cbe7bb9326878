import pytest
from pydantic import field_validator
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list


class _OriginsSettings(BaseSettings):
    model_config = {"env_prefix": "VALIDATORS_TEST_"}

    cors_origins: list[str] = ["http://default"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse(cls, v):
        return parse_string_list(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,  # noqa: ARG003
        dotenv_settings,
        file_secret_settings,
    ):
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings


class TestParseStringList:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ('["http://a.com","http://b.com"]', ["http://a.com", "http://b.com"]),
            ("http://a.com,http://b.com", ["http://a.com", "http://b.com"]),
            ("  http://a.com , http://b.com  ", ["http://a.com", "http://b.com"]),
            ("http://a.com,,http://b.com,", ["http://a.com", "http://b.com"]),
            (["http://x"], ["http://x"]),
        ],
    )
    def test_accepted_forms(self, raw, expected):
        assert parse_string_list(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", ",", ",,,", "[]", []])
    def test_empty_raises(self, raw):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list(raw)

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_string_list("[not valid json")

    def test_json_non_string_items_raise(self):
        with pytest.raises(ValueError, match="must be an array of strings"):
            parse_string_list('["http://a.com", 123]')


class TestStringListEnvSettingsSource:
    def test_csv_env_value_reaches_validator(self, monkeypatch):
        monkeypatch.setenv("VALIDATORS_TEST_CORS_ORIGINS", "http://a.com,http://b.com")
        assert _OriginsSettings().cors_origins == ["http://a.com", "http://b.com"]

    def test_json_env_value(self, monkeypatch):
        monkeypatch.setenv("VALIDATORS_TEST_CORS_ORIGINS", '["http://a.com"]')
        assert _OriginsSettings().cors_origins == ["http://a.com"]

    def test_default_without_env(self, monkeypatch):
        monkeypatch.delenv("VALIDATORS_TEST_CORS_ORIGINS", raising=False)
        assert _OriginsSettings().cors_origins == ["http://default"]
