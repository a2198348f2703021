import json
from unittest.mock import Mock

import pytest

from errors import ConfigurationError
from settings import DEFAULT_MODEL_ID, RuntimeSettings, SecretsProvider


class TestRuntimeSettings:
    def test_reads_environment(self):
        settings = RuntimeSettings.from_environment({
            "AWS_REGION": "eu-west-1",
            "SECRETS_ARN": "arn:secret",
            "ENVIRONMENT": "prod",
            "MODEL_ID": "custom-model",
        })
        assert settings == RuntimeSettings("eu-west-1", "arn:secret", "prod", "custom-model")

    def test_defaults(self):
        settings = RuntimeSettings.from_environment({})
        assert settings.region is None
        assert settings.secrets_arn is None
        assert settings.environment == "local"
        assert settings.model_id == DEFAULT_MODEL_ID


class TestSecretsProvider:
    def test_fetches_once_per_process(self, secrets_client):
        provider = SecretsProvider("arn:secret", client=secrets_client)

        first = provider.get()
        second = provider.get()

        assert first is second
        assert first["SUPABASE_URL"] == "https://example.supabase.co"
        secrets_client.get_secret_value.assert_called_once_with(SecretId="arn:secret")

    def test_refresh_forces_refetch(self, secrets_client):
        provider = SecretsProvider("arn:secret", client=secrets_client)
        provider.get()
        provider.refresh()
        provider.get()

        assert secrets_client.get_secret_value.call_count == 2

    def test_max_age_refetches_after_expiry(self, secrets_client):
        now = [100.0]
        provider = SecretsProvider("arn:secret", client=secrets_client,
                                   max_age_seconds=60, clock=lambda: now[0])
        provider.get()
        now[0] = 159.0
        provider.get()
        assert secrets_client.get_secret_value.call_count == 1

        now[0] = 160.0
        provider.get()
        assert secrets_client.get_secret_value.call_count == 2

    def test_missing_secret_id(self):
        with pytest.raises(ConfigurationError):
            SecretsProvider(None, client=Mock()).get()

    def test_non_json_secret(self):
        client = Mock()
        client.get_secret_value.return_value = {"SecretString": "not json"}

        with pytest.raises(ConfigurationError):
            SecretsProvider("arn:secret", client=client).get()

    def test_require_returns_values(self, secrets_client):
        provider = SecretsProvider("arn:secret", client=secrets_client)
        assert provider.require("SUPABASE_URL") == {"SUPABASE_URL": "https://example.supabase.co"}

    @pytest.mark.parametrize("bundle", [
        {"SUPABASE_URL": "https://x"},
        {"SUPABASE_URL": "https://x", "SUPABASE_SERVICE_ROLE_KEY": ""},
        {"SUPABASE_URL": "PLACEHOLDER", "SUPABASE_SERVICE_ROLE_KEY": "key"},
    ])
    def test_require_rejects_missing_or_placeholder(self, bundle):
        client = Mock()
        client.get_secret_value.return_value = {"SecretString": json.dumps(bundle)}
        provider = SecretsProvider("arn:secret", client=client)

        with pytest.raises(ConfigurationError) as exc_info:
            provider.require("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", message="not configured")
        assert exc_info.value.message == "not configured"
        assert exc_info.value.status_code == 500
