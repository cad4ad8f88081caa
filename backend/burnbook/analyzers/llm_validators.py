"""Validation helpers for LLM outputs."""
from typing import Any, Tuple

ENTITY_TYPES = ("company", "product", "feature")


def _is_probability(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 0.0 <= value <= 1.0


def validate_sentiment_response(data: Any) -> Tuple[bool, str]:
    if not isinstance(data, dict):
        return False, "Root must be an object."
    for key in ("positive", "neutral", "negative"):
        if not _is_probability(data.get(key)):
            return False, f'"{key}" must be a number in [0,1].'
    total = data["positive"] + data["neutral"] + data["negative"]
    if not 0.95 <= total <= 1.05:
        return False, "Probabilities must sum to 1."
    key_phrases = data.get("key_phrases")
    if not isinstance(key_phrases, list):
        return False, '"key_phrases" must be a list.'
    if len(key_phrases) > 5:
        return False, "Too many key phrases."
    for phrase in key_phrases:
        if not isinstance(phrase, str):
            return False, "Key phrases must be strings."
    return True, ""


def validate_entity_response(data: Any) -> Tuple[bool, str]:
    if not isinstance(data, dict):
        return False, "Root must be an object."
    entities = data.get("entities")
    if not isinstance(entities, list):
        return False, '"entities" must be a list.'
    for i, item in enumerate(entities, start=1):
        if not isinstance(item, dict):
            return False, f"Entity {i} must be an object."
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            return False, f"Entity {i} must have a non-empty name."
        if item.get("type") not in ENTITY_TYPES:
            return False, f'Entity {i} "type" must be one of {list(ENTITY_TYPES)}.'
        if not _is_probability(item.get("confidence")):
            return False, f'Entity {i} "confidence" must be a number in [0,1].'
    return True, ""
