"""Shared fixtures for handler and stack tests.

Handler modules live in runtime/story and are importable by name
(see ``pythonpath`` in pyproject.toml).
"""
import io
import json
from unittest.mock import Mock

import pytest

from settings import RuntimeSettings


def bedrock_response(text):
    payload = {"content": [{"type": "text", "text": text}]}
    return {"body": io.BytesIO(json.dumps(payload).encode("utf-8"))}


def sent_request(client):
    """Decoded JSON body of the last invoke_model call."""
    return json.loads(client.invoke_model.call_args.kwargs["body"])


@pytest.fixture
def bedrock_client():
    client = Mock()
    client.invoke_model.return_value = bedrock_response("Generated text.")
    return client


@pytest.fixture
def runtime_settings():
    return RuntimeSettings(
        region="us-east-1",
        secrets_arn="arn:aws:secretsmanager:us-east-1:123456789012:secret:dev/app-secrets",
        environment="dev",
        model_id="test-model",
    )


@pytest.fixture
def secrets_client():
    client = Mock()
    client.get_secret_value.return_value = {
        "SecretString": json.dumps({
            "SUPABASE_URL": "https://example.supabase.co",
            "SUPABASE_ANON_KEY": "anon-key",
            "SUPABASE_SERVICE_ROLE_KEY": "service-key",
        })
    }
    return client


@pytest.fixture
def make_event():
    def _make(body=None, method="POST"):
        return {
            "httpMethod": method,
            "body": body if body is None or isinstance(body, str) else json.dumps(body),
        }
    return _make
