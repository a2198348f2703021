import logging
from dataclasses import dataclass
from typing import Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

from errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass
class StorySegment:
    id: str
    content: str
    story_id: Optional[str]
    genre: Optional[str]


def create_datastore_client(secrets) -> Client:
    """Service-role Supabase client built from the secret bundle."""
    creds = secrets.require(
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
        message="Supabase credentials not configured",
    )
    return create_client(creds["SUPABASE_URL"], creds["SUPABASE_SERVICE_ROLE_KEY"])


def _story_genre(stories):
    # The embedded relation comes back as an object or a one-element list
    if isinstance(stories, list):
        stories = stories[0] if stories else None
    if isinstance(stories, dict):
        return stories.get("genre")
    return None


def fetch_segment(client: Client, segment_id: str) -> StorySegment:
    try:
        result = (
            client.table("story_segments")
            .select("content, story_id, stories(genre)")
            .eq("id", segment_id)
            .maybe_single()
            .execute()
        )
    except APIError as e:
        logger.error("Error fetching segment %s: %s", segment_id, e)
        raise NotFoundError("Segment not found") from e

    row = result.data if result is not None else None
    if not row:
        raise NotFoundError("Segment not found")

    return StorySegment(
        id=segment_id,
        content=row.get("content", ""),
        story_id=row.get("story_id"),
        genre=_story_genre(row.get("stories")),
    )
