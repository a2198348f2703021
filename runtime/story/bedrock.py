import json
import logging

import boto3
from botocore.exceptions import ClientError

from errors import InferenceError, RateLimitError

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"
TEMPERATURE = 0.7
MAX_TOKENS = 4096

# Bedrock error codes that mean "slow down" rather than "broken"
RATE_LIMIT_CODES = ("ThrottlingException", "ServiceQuotaExceededException")

_clients = {}


def get_client(region=None):
    if region not in _clients:
        _clients[region] = boto3.client("bedrock-runtime", region_name=region)
    return _clients[region]


def build_request(prompt):
    return {
        "anthropic_version": ANTHROPIC_VERSION,
        "max_tokens": MAX_TOKENS,
        "temperature": TEMPERATURE,
        "messages": [
            {
                "role": "user",
                "content": [{"type": "text", "text": prompt}],
            }
        ],
    }


def invoke_claude(client, model_id, prompt):
    """Send one single-turn prompt and return the first text block."""
    logger.info("Invoking %s", model_id)

    try:
        response = client.invoke_model(
            body=json.dumps(build_request(prompt)),
            modelId=model_id,
            accept="application/json",
            contentType="application/json",
        )
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code")
        if code in RATE_LIMIT_CODES:
            logger.warning("Bedrock rate limited the request: %s", code)
            raise RateLimitError() from e
        message = e.response.get("Error", {}).get("Message") or str(e)
        raise InferenceError(message) from e

    response_body = json.loads(response.get("body").read())
    for block in response_body.get("content") or []:
        if block.get("type", "text") == "text" and "text" in block:
            return block["text"]

    raise InferenceError("Model returned no text")
