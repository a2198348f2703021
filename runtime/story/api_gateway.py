"""API Gateway proxy envelope shared by the story handlers.

Every handler body goes through ``handle_request``: CORS preflight,
JSON body parsing and the mapping of exceptions onto HTTP status codes.
"""
import json
import logging

from errors import StoryApiError, ValidationError

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def json_response(status_code, body):
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def error_response(status_code, message):
    return json_response(status_code, {"error": message})


def preflight_response():
    return {
        "statusCode": 200,
        "headers": dict(CORS_HEADERS),
        "body": "",
    }


def parse_body(event):
    body = event.get("body")
    if body is None or body == "":
        return {}
    if isinstance(body, dict):
        return body
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(parsed, dict):
        raise ValidationError("Request body must be a JSON object")
    return parsed


def handle_request(event, process, name):
    """Run ``process(body)`` and wrap its result or failure in a response."""
    if event.get("httpMethod") == "OPTIONS":
        return preflight_response()

    try:
        body = parse_body(event)
        return json_response(200, process(body))
    except StoryApiError as e:
        if e.status_code >= 500:
            logger.error("Error in %s function: %s", name, e.message)
        else:
            logger.info("%s rejected request (%d): %s", name, e.status_code, e.message)
        return error_response(e.status_code, e.message)
    except Exception as e:
        logger.exception("Error in %s function", name)
        return error_response(500, str(e) or "An error occurred")
