"""
Lexical similarity between tasks, used to rank dependency suggestions.

Handles:
- Keyword extraction from title/description text
- Weighted confidence score (title words, tags, description keywords)
"""

from __future__ import annotations

import math
import re
from typing import Optional

from taskdeps.core.config import Settings, get_settings
from taskdeps.schemas.tasks import TaskSnapshot


def extract_keywords(
    title: str,
    description: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> list[str]:
    """Lower-cased word tokens of ``title + description`` minus stop words."""
    settings = settings or get_settings()
    text = f"{title} {description or ''}".lower()
    pattern = re.compile(rf"\b\w{{{settings.keyword_min_length},}}\b", re.ASCII)
    stop_words = set(settings.stop_words)
    return [word for word in pattern.findall(text) if word not in stop_words]


def shares_keywords(
    task: TaskSnapshot, other: TaskSnapshot, settings: Optional[Settings] = None
) -> bool:
    settings = settings or get_settings()
    other_keywords = set(extract_keywords(other.title, other.description, settings))
    return any(
        keyword in other_keywords
        for keyword in extract_keywords(task.title, task.description, settings)
    )


def _overlap_ratio(left: list[str], right: list[str]) -> float:
    # Counted from the left side, duplicates included
    right_set = set(right)
    common = [item for item in left if item in right_set]
    return len(common) / max(len(left), len(right))


def calculate_confidence(
    task: TaskSnapshot, other: TaskSnapshot, settings: Optional[Settings] = None
) -> int:
    """Score in ``[0, 100]`` estimating how related two tasks are."""
    settings = settings or get_settings()
    score = 0.0

    task_words = task.title.lower().split(" ")
    other_words = other.title.lower().split(" ")
    score += _overlap_ratio(task_words, other_words) * settings.title_weight

    if task.tags and other.tags:
        task_tags = [tag.lower() for tag in task.tags]
        other_tags = [tag.lower() for tag in other.tags]
        score += _overlap_ratio(task_tags, other_tags) * settings.tag_weight

    if task.description and other.description:
        other_keywords = set(extract_keywords(other.description, settings=settings))
        common = [
            keyword
            for keyword in extract_keywords(task.description, settings=settings)
            if keyword in other_keywords
        ]
        score += min(
            len(common) * settings.description_keyword_points,
            settings.description_max_points,
        )

    # Half-up rounding, then clamp
    return max(0, min(math.floor(score + 0.5), 100))
