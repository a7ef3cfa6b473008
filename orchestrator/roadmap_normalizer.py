"""
Coerce model-produced roadmap documents into typed steps.

The model's fields are untrusted: numbers may arrive as strings, lists as
scalars, enums outside their range. Steps are capped and renumbered so
``day`` always runs 1..n without gaps.
"""

from typing import Any

from models.roadmap import LEVELS, STEP_TYPES, RoadmapStep

DEFAULT_DURATION = "5 minutes"


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = [value]

    out = []
    for item in items:
        if isinstance(item, dict):
            item = item.get("title") or item.get("name") or item.get("url")
        if item is None:
            continue
        text = str(item).strip()
        if text:
            out.append(text)
    return out


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def coerce_step(raw: Any, day: int, default_difficulty: str = "beginner") -> RoadmapStep | None:
    """Build one step from a model dict; non-dict entries are dropped."""
    if not isinstance(raw, dict):
        return None

    topic = raw.get("title") or raw.get("topic") or f"Day {day}"
    step_type = str(raw.get("type") or "theory").strip().lower()
    if step_type not in STEP_TYPES:
        # "theory|practice" style answers copied from the schema
        step_type = next((t for t in STEP_TYPES if t in step_type), "theory")

    difficulty = str(raw.get("difficulty") or default_difficulty).strip().lower()
    if difficulty not in LEVELS:
        difficulty = default_difficulty

    return RoadmapStep(
        day=day,
        topic=str(topic).strip() or f"Day {day}",
        description=str(raw.get("description") or ""),
        duration=str(raw.get("duration") or DEFAULT_DURATION),
        type=step_type,
        concepts=_string_list(raw.get("concepts")),
        resources=_string_list(raw.get("resources")),
        optional=_as_bool(raw.get("optional", False)),
        difficulty=difficulty,
    )


def raw_steps(document: Any) -> list[Any]:
    if isinstance(document, dict) and isinstance(document.get("steps"), list):
        return document["steps"]
    return []


def has_steps(document: Any) -> bool:
    return any(isinstance(s, dict) for s in raw_steps(document))


def normalize_steps(
    document: Any, *, cap: int = 7, default_difficulty: str = "beginner"
) -> list[RoadmapStep]:
    """
    First ``cap`` usable steps of ``document`` with days renumbered from 1.

    The model's own ``day`` values are ignored: multi-week plans restart
    day numbering each week, which would break contiguity.
    """
    if default_difficulty not in LEVELS:
        default_difficulty = "beginner"

    steps: list[RoadmapStep] = []
    for raw in raw_steps(document):
        if len(steps) >= cap:
            break
        step = coerce_step(raw, len(steps) + 1, default_difficulty)
        if step is not None:
            steps.append(step)
    return steps


def static_skeleton(topic: str, level: str = "beginner") -> dict[str, Any]:
    """Minimal one-step roadmap returned when every synthesis tier failed."""
    difficulty = level if level in LEVELS else "beginner"
    return {
        "overview": f"Learning roadmap for {topic}",
        "prerequisites": [],
        "steps": [
            {
                "week": 1,
                "day": 1,
                "title": f"Introduction to {topic}",
                "description": f"Learn the basics of {topic}",
                "duration": DEFAULT_DURATION,
                "type": "theory",
                "concepts": [topic],
                "resources": [],
                "optional": False,
                "difficulty": difficulty,
            }
        ],
        "projects": [],
        "milestones": [],
        "additionalResources": [],
    }
