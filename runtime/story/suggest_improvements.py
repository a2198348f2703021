import logging
import os

import bedrock
from api_gateway import handle_request
from errors import ValidationError
from prompts import build_suggestion_prompt
from segments import create_datastore_client, fetch_segment
from settings import RuntimeSettings, SecretsProvider

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))

# One provider per warm execution context
_secrets = None


def get_secrets(settings):
    global _secrets
    if _secrets is None or _secrets.secret_id != settings.secrets_arn:
        _secrets = SecretsProvider.from_settings(settings)
    return _secrets


def suggest_improvements(body, settings, secrets, bedrock_client, datastore_factory=create_datastore_client):
    segment_id = body.get("segmentId")
    if not segment_id:
        raise ValidationError("Segment ID is required")

    datastore = datastore_factory(secrets)
    segment = fetch_segment(datastore, segment_id)

    logger.info("Analyzing segment for improvements, genre: %s", segment.genre)

    prompt = build_suggestion_prompt(segment.content, segment.genre)
    suggestions = bedrock.invoke_claude(bedrock_client, settings.model_id, prompt)

    logger.info("Improvement suggestions generated successfully")
    return {"suggestions": suggestions}


def lambda_handler(event, context):
    settings = RuntimeSettings.from_environment()

    def process(body):
        return suggest_improvements(
            body,
            settings,
            get_secrets(settings),
            bedrock.get_client(settings.region),
            create_datastore_client,
        )

    return handle_request(event, process, "suggest-improvements")
