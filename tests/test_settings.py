import os
from unittest.mock import patch

import pytest

from cvmatch.models.settings import DEFAULT_MODEL, MatchSettings
from cvmatch.utils.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def no_dotenv():
    with patch("cvmatch.models.settings.load_dotenv") as mock_load:
        yield mock_load


class TestMatchSettings:
    """Environment-driven configuration"""

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        settings = MatchSettings.from_env()

        assert settings.model_name == DEFAULT_MODEL
        assert settings.max_job_description_chars == 50_000
        assert settings.oversize_policy == "reject"
        assert settings.score_tolerance == 1
        assert settings.api_key.get_secret_value() == ""

    @patch.dict(os.environ, {
        "ORACLE_API_KEY": "primary",
        "LOVABLE_API_KEY": "fallback",
        "ORACLE_BASE_URL": "https://llm.internal/v1/",
        "ORACLE_MODEL": "test/model",
        "ORACLE_REQUEST_TIMEOUT": "12.5",
        "MAX_JOB_DESCRIPTION_CHARS": "2000",
        "JOB_DESCRIPTION_OVERSIZE_POLICY": "TRUNCATE",
    }, clear=True)
    def test_overrides(self):
        settings = MatchSettings.from_env()

        assert settings.api_key.get_secret_value() == "primary"
        assert settings.completions_url == "https://llm.internal/v1/chat/completions"
        assert settings.model_name == "test/model"
        assert settings.request_timeout == 12.5
        assert settings.max_job_description_chars == 2000
        assert settings.oversize_policy == "truncate"

    @patch.dict(os.environ, {"LOVABLE_API_KEY": "fallback"}, clear=True)
    def test_gateway_key_fallback(self):
        assert MatchSettings.from_env().api_key.get_secret_value() == "fallback"

    @patch.dict(os.environ, {"JOB_DESCRIPTION_OVERSIZE_POLICY": "ignore"}, clear=True)
    def test_invalid_value_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            MatchSettings.from_env()

    def test_api_key_not_in_repr(self):
        settings = MatchSettings(api_key="super-secret")
        assert "super-secret" not in repr(settings)
