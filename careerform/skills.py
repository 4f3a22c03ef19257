# careerform/skills.py
from __future__ import annotations
from typing import Any, TypedDict

# ===================================================================
# TAG PICKER LOGIC (shared by the TAGS and SKILLS widgets)
# ===================================================================

COMMIT_KEYS: frozenset[str] = frozenset({'Enter', ',', 'Tab'})
MIN_RATING: int = 1
MAX_RATING: int = 5

class SkillRating(TypedDict):
    skill: str
    rating: int  # 0 = not rated yet

def add_tag(tags: list[str], text: str) -> list[str]:
    """Returns a new tag list with `text` appended, unless blank or already present."""
    tag = text.strip()
    if not tag or tag in tags:
        return list(tags)
    return [*tags, tag]

def remove_tag(tags: list[str], tag: str) -> list[str]:
    return [t for t in tags if t != tag]

def handle_tag_key(tags: list[str], text: str, key: str) -> tuple[list[str], str]:
    """
    Applies one keystroke from the tag input. Enter, comma and Tab commit the
    pending text; Backspace on an empty input drops the last tag. Returns the
    new tag list and the new input text.
    """
    if key in COMMIT_KEYS:
        pending = text.rstrip(',')
        if pending.strip():
            return add_tag(tags, pending), ''
        return list(tags), pending
    if key == 'Backspace' and not text and tags:
        return tags[:-1], text
    return list(tags), text

def suggestions(options: list[str], tags: list[str], text: str, limit: int | None = None) -> list[str]:
    """Options not chosen yet that contain `text`, case-insensitively."""
    needle = text.strip().lower()
    matches = [o for o in options if o not in tags and needle in o.lower()]
    return matches[:limit] if limit is not None else matches

# ===================================================================
# SKILL RATINGS
# ===================================================================

def sync_skill_ratings(ratings: list[SkillRating], skills: list[str]) -> list[SkillRating]:
    """Keeps existing ratings for skills still selected; new skills start unrated."""
    existing = {r['skill']: r['rating'] for r in ratings}
    return [SkillRating(skill=s, rating=existing.get(s, 0)) for s in skills]

def set_skill_rating(ratings: list[SkillRating], skill: str, rating: int) -> list[SkillRating]:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}")
    return [
        SkillRating(skill=r['skill'], rating=rating if r['skill'] == skill else r['rating'])
        for r in ratings
    ]

def all_skills_rated(value: Any) -> bool:
    """True for an empty selection or when every selected skill has a rating."""
    if not value:
        return True
    if not isinstance(value, list):
        return True
    for item in value:
        if isinstance(item, dict) and int(item.get('rating') or 0) <= 0:
            return False
    return True
