import logging
import os

import bedrock
from api_gateway import handle_request
from errors import ValidationError
from prompts import build_continuation_prompt
from settings import RuntimeSettings

logger = logging.getLogger()
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO"))


def continue_story(body, settings, bedrock_client):
    previous_segments = body.get("previousSegments")
    genre = body.get("genre")

    if previous_segments is None or not genre:
        raise ValidationError("previousSegments and genre are required")
    if not isinstance(previous_segments, list):
        raise ValidationError("previousSegments must be a list")
    if not all(isinstance(segment, dict) for segment in previous_segments):
        raise ValidationError("previousSegments must contain objects")

    logger.info("Generating story continuation for genre: %s", genre)

    prompt = build_continuation_prompt(previous_segments, genre)
    continuation = bedrock.invoke_claude(bedrock_client, settings.model_id, prompt)

    logger.info("Story continuation generated successfully")
    return {"continuation": continuation}


def lambda_handler(event, context):
    settings = RuntimeSettings.from_environment()

    def process(body):
        return continue_story(body, settings, bedrock.get_client(settings.region))

    return handle_request(event, process, "continue-story")
