"""Prompt templates for batch relevance scoring."""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from personal_feed.ranker.models import Story, UserProfile


SYSTEM_INSTRUCTION = (
    "You are a personal news assistant that rates how relevant technology "
    "stories are to one specific professional. Judge each story against the "
    "reader's role, stated interests and current projects only. "
    "Respond ONLY with a JSON object of the form "
    '{"rankings": [{"story_id": "<id>", "relevance_score": <0-100>}]}, '
    "no markdown fences or extra text."
)

_BATCH_TEMPLATE = """Evaluate these {count} stories for a {role} with these preferences:

INTERESTS: {interests}
CURRENT PROJECTS: {projects}

For each story, provide ONLY a relevance_score (0-100) based on how well it matches their interests, role, and projects.

Score highly (70-100) stories that:
- Directly relate to their stated interests and current projects
- Provide actionable insights for their professional role
- Offer new developments, tools, or techniques in their field
- Could impact their current work or career development

Score moderately (30-69) stories that are somewhat related but not central to their interests.
Score low (0-29) stories that are not relevant to their profile.

Evaluate ALL {count} stories and return scores for each, using the exact IDs given.

STORIES:
{stories_section}"""


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def format_story_context(story: Story, index: int, content_chars: int) -> str:
    """Render the compact context block for one story.

    Args:
        story: Story to describe.
        index: 1-based position within the batch.
        content_chars: Maximum characters of body text to include.

    Returns:
        Multi-line text block.
    """
    content = _truncate(story.content or story.summary or "", content_chars)
    tags = ", ".join(story.tags) if story.tags else "none"
    return (
        f"Story {index} (ID: {story.id}):\n"
        f"Title: {story.title}\n"
        f"Content: {content}\n"
        f"Tags: {tags}\n"
        f"Source: {story.source_name}\n"
        f"Published: {story.published_at.date().isoformat()}"
    )


def build_batch_prompt(
    profile: UserProfile,
    batch: list[Story],
    content_chars: int = 300,
) -> str:
    """Build the scoring prompt for one batch.

    Args:
        profile: Reader profile.
        batch: Stories to score.
        content_chars: Maximum characters of body text per story.

    Returns:
        Prompt text.
    """
    stories_section = "\n\n".join(
        format_story_context(story, i + 1, content_chars)
        for i, story in enumerate(batch)
    )
    return _BATCH_TEMPLATE.format(
        count=len(batch),
        role=profile.role,
        interests=", ".join(profile.interests),
        projects=profile.projects,
        stories_section=stories_section,
    )
