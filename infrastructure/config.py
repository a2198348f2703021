import getpass
import os
import re
from dataclasses import dataclass
from pathlib import Path

from aws_cdk import RemovalPolicy, aws_logs as logs

PROJECT_NAME = "Storyclunk"

REPO_ROOT = Path(__file__).resolve().parent.parent
LAMBDA_CODE_PATH = REPO_ROOT / "runtime" / "story"

DEFAULT_MODEL_ID = "us.anthropic.claude-haiku-4-5-20251001-v1:0"
DEFAULT_REPOSITORY = "marinsokol5/story-clunker"
DEFAULT_BRANCH = "main"
DEFAULT_BUILD_PATH = "dist"

PIPELINE_STACK_NAME = "StoryclunkPipelineStack"
PIPELINE_NAME = "StoryclunkPipeline"

ENVIRONMENT_PATTERN = re.compile(r"^(dev|prod|preview-[a-z0-9][a-z0-9-]*)$")


@dataclass(frozen=True)
class HandlerConfig:
    """One API resource and the Lambda function behind it."""

    name: str
    handler: str
    description: str
    memory_size: int = 512
    timeout_seconds: int = 30


# API resource name -> function configuration
HANDLERS = (
    HandlerConfig(
        name="continue-story",
        handler="continue_story.lambda_handler",
        description="Continues a story from its previous segments",
    ),
    HandlerConfig(
        name="suggest-improvements",
        handler="suggest_improvements.lambda_handler",
        description="Suggests writing improvements for one story segment",
    ),
)


def api_stack_name(environment):
    return f"{PROJECT_NAME}Api-{environment}"


def frontend_stack_name(environment):
    return f"{PROJECT_NAME}Frontend-{environment}"


def secret_name(environment):
    return f"{environment}/app-secrets"


def is_production(environment):
    return environment == "prod"


def log_retention(environment):
    if is_production(environment):
        return logs.RetentionDays.INFINITE
    return logs.RetentionDays.ONE_WEEK


def log_removal_policy(environment):
    if is_production(environment):
        return RemovalPolicy.RETAIN
    return RemovalPolicy.DESTROY


def default_environment():
    try:
        username = os.environ.get("USER") or getpass.getuser()
    except (KeyError, OSError):
        return "preview-local"
    slug = re.sub(r"[^a-z0-9]+", "-", username.lower()).strip("-")
    return f"preview-{slug}" if slug else "preview-local"


def validate_environment_name(environment):
    if not environment or not ENVIRONMENT_PATTERN.match(environment):
        raise ValueError(
            f"Invalid environment name {environment!r}: expected dev, prod or preview-<user>"
        )
    return environment
