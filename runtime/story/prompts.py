import logging

logger = logging.getLogger(__name__)

# Mirrors the stories_genre_check constraint in supabase/migrations
GENRES = ("scary", "funny", "sci-fi", "fantasy")

FALLBACK_GENRE = "sci-fi"

GENRE_PROMPTS = {
    "scary": (
        "You are a master horror writer. Create suspenseful, eerie, and thrilling story "
        "continuations that keep readers on edge. Use vivid, atmospheric descriptions "
        "and build tension."
    ),
    "funny": (
        "You are a comedic storyteller. Create humorous, witty, and entertaining story "
        "continuations with clever wordplay, unexpected twists, and laugh-out-loud moments."
    ),
    "sci-fi": (
        "You are a science fiction author. Create imaginative, thought-provoking story "
        "continuations with advanced technology, alien worlds, and futuristic concepts."
    ),
    "fantasy": (
        "You are an epic fantasy author. Create enchanting, adventurous story "
        "continuations with magic, mythical creatures, and richly imagined realms."
    ),
}

COACH_PROMPT = """You are an expert creative writing coach. Analyze the provided story segment and suggest specific, actionable improvements. Focus on:
- Narrative flow and pacing
- Character development
- Descriptive language and imagery
- Dialogue quality (if present)
- Genre-specific elements
- Grammar and style

Provide 3-5 concrete suggestions that will enhance the writing quality."""


def system_prompt_for(genre):
    prompt = GENRE_PROMPTS.get(genre)
    if prompt is None:
        logger.warning("No prompt for genre %r, falling back to %s", genre, FALLBACK_GENRE)
        prompt = GENRE_PROMPTS[FALLBACK_GENRE]
    return prompt


def transcript_line(segment):
    tag = "[AI]" if segment.get("is_ai_generated") else "[User]"
    return f"{tag}: {segment.get('content', '')}"


def build_transcript(segments):
    return "\n\n".join(transcript_line(seg) for seg in segments)


def build_continuation_prompt(segments, genre):
    user_prompt = (
        f"Continue this {genre} story with 2-3 engaging paragraphs that naturally flow "
        f"from what came before. Make it creative and compelling:\n\n"
        f"{build_transcript(segments)}\n\nYour continuation:"
    )
    return f"{system_prompt_for(genre)}\n\n{user_prompt}"


def build_suggestion_prompt(content, genre):
    user_prompt = (
        f"Genre: {genre}\n\nStory segment to analyze:\n\n{content}\n\n"
        f"Provide specific improvement suggestions:"
    )
    return f"{COACH_PROMPT}\n\n{user_prompt}"
