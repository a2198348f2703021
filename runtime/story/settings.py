import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import boto3

from errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_ID = "us.anthropic.claude-haiku-4-5-20251001-v1:0"
PLACEHOLDER = "PLACEHOLDER"


@dataclass(frozen=True)
class RuntimeSettings:
    region: Optional[str]
    secrets_arn: Optional[str]
    environment: str
    model_id: str

    @classmethod
    def from_environment(cls, environ=None):
        environ = os.environ if environ is None else environ
        return cls(
            region=environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION"),
            secrets_arn=environ.get("SECRETS_ARN"),
            environment=environ.get("ENVIRONMENT", "local"),
            model_id=environ.get("MODEL_ID") or DEFAULT_MODEL_ID,
        )


class SecretsProvider:
    """Per-environment secret bundle read from Secrets Manager.

    The bundle is fetched on first use and kept in memory. With
    ``max_age_seconds=None`` it stays valid for the lifetime of the process,
    so a new execution context is needed to pick up rotated values. Passing a
    number re-fetches the bundle once it is older than that.
    """

    def __init__(
        self,
        secret_id: Optional[str],
        region: Optional[str] = None,
        client=None,
        max_age_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.secret_id = secret_id
        self.region = region
        self.max_age_seconds = max_age_seconds
        self._client = client
        self._clock = clock
        self._data: Optional[Dict[str, str]] = None
        self._loaded_at = 0.0

    @classmethod
    def from_settings(cls, settings: RuntimeSettings, **kwargs) -> "SecretsProvider":
        return cls(settings.secrets_arn, region=settings.region, **kwargs)

    def _expired(self) -> bool:
        if self.max_age_seconds is None:
            return False
        return self._clock() - self._loaded_at >= self.max_age_seconds

    def get(self) -> Dict[str, str]:
        if self._data is not None and not self._expired():
            return self._data

        if not self.secret_id:
            raise ConfigurationError("SECRETS_ARN is not configured")

        if self._client is None:
            self._client = boto3.client("secretsmanager", region_name=self.region)

        response = self._client.get_secret_value(SecretId=self.secret_id)
        try:
            data = json.loads(response["SecretString"])
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Secret bundle is not a JSON object: {e}")
        if not isinstance(data, dict):
            raise ConfigurationError("Secret bundle is not a JSON object")

        logger.info("Loaded secret bundle with %d keys", len(data))
        self._data = data
        self._loaded_at = self._clock()
        return data

    def refresh(self) -> None:
        self._data = None

    def require(self, *keys: str, message: Optional[str] = None) -> Dict[str, str]:
        secrets = self.get()
        missing = [k for k in keys if not secrets.get(k) or secrets.get(k) == PLACEHOLDER]
        if missing:
            raise ConfigurationError(message or f"Missing secrets: {', '.join(missing)}")
        return {k: secrets[k] for k in keys}
