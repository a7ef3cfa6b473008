"""Roadmap domain objects: generation options, steps, persisted roadmap, API results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tools.web.contracts import RankedResource, utc_now_iso

LEVELS = ("beginner", "intermediate", "advanced")
FOCUS_MODES = ("theory", "practical", "mixed")
STEP_TYPES = ("theory", "practice", "project", "quiz", "review")


class Methodology(str, Enum):
    WEB_ENHANCED = "web-enhanced-llm"
    LLM_FALLBACK = "llm-fallback"
    STATIC_SKELETON = "static-skeleton"


class GeneratedWith(str, Enum):
    RESEARCH_AGENT = "research-agent"
    BASIC_LLM = "basic-llm"


@dataclass(frozen=True)
class GenerationOptions:
    level: str = "beginner"
    timeframe: str = "4-weeks"
    daily_time_minutes: int = 30
    focus: str = "practical"
    include_projects: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "GenerationOptions":
        data = data or {}
        return cls(
            level=data.get("level", cls.level),
            timeframe=data.get("timeframe", cls.timeframe),
            daily_time_minutes=data.get("dailyTimeMinutes", data.get("daily_time_minutes", 30)),
            focus=data.get("focus", cls.focus),
            include_projects=data.get("includeProjects", data.get("include_projects", True)),
        )


@dataclass(frozen=True)
class SkillStrength:
    topic: str
    strength_level: int


@dataclass(frozen=True)
class LearnerProfile:
    """What the profile/onboarding side knows about a learner."""

    skill: str = ""
    level: str = "beginner"
    daily_time_minutes: int = 30
    goal: str = ""
    concepts: list[SkillStrength] = field(default_factory=list)

    def weak_topics(self, threshold: int = 50, limit: int = 5) -> list[str]:
        weak = [f"{c.topic} ({c.strength_level})" for c in self.concepts if c.strength_level < threshold]
        return weak[:limit]


@dataclass(frozen=True)
class RoadmapStep:
    day: int
    topic: str
    description: str = ""
    duration: str = "5 minutes"
    type: str = "theory"
    concepts: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    optional: bool = False
    difficulty: str = "beginner"

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "topic": self.topic,
            "description": self.description,
            "duration": self.duration,
            "type": self.type,
            "concepts": list(self.concepts),
            "resources": list(self.resources),
            "optional": self.optional,
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoadmapStep":
        return cls(
            day=int(data["day"]),
            topic=str(data["topic"]),
            description=str(data.get("description", "")),
            duration=str(data.get("duration", "5 minutes")),
            type=str(data.get("type", "theory")),
            concepts=[str(c) for c in data.get("concepts", [])],
            resources=[str(r) for r in data.get("resources", [])],
            optional=bool(data.get("optional", False)),
            difficulty=str(data.get("difficulty", "beginner")),
        )


@dataclass(frozen=True)
class RoadmapMetadata:
    generated_with: str
    sources: list[dict[str, Any]] = field(default_factory=list)
    generated_at: str = field(default_factory=utc_now_iso)
    methodology: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "generatedWith": self.generated_with,
            "sources": list(self.sources),
            "generatedAt": self.generated_at,
        }
        if self.methodology:
            data["methodology"] = self.methodology
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RoadmapMetadata":
        data = data or {}
        return cls(
            generated_with=str(data.get("generatedWith", GeneratedWith.BASIC_LLM.value)),
            sources=list(data.get("sources", [])),
            generated_at=str(data.get("generatedAt", "")),
            methodology=data.get("methodology"),
        )


@dataclass(frozen=True)
class Roadmap:
    """The persisted per-user roadmap (one row per user)."""

    user_id: str
    steps: list[RoadmapStep]
    metadata: RoadmapMetadata
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "steps": [s.to_dict() for s in self.steps],
            "metadata": self.metadata.to_dict(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class ComprehensiveRoadmapResult:
    topic: str
    options: GenerationOptions
    roadmap: dict[str, Any]
    sources: list[RankedResource]
    methodology: Methodology
    warning: str | None = None
    generated_at: str = field(default_factory=utc_now_iso)

    @property
    def total_steps(self) -> int:
        steps = self.roadmap.get("steps")
        return len(steps) if isinstance(steps, list) else 0

    def to_dict(self) -> dict[str, Any]:
        data = {
            "topic": self.topic,
            "timeframe": self.options.timeframe,
            "level": self.options.level,
            "dailyTimeMinutes": self.options.daily_time_minutes,
            "generatedAt": self.generated_at,
            "roadmap": self.roadmap,
            "sources": [s.to_dict() for s in self.sources],
            "methodology": self.methodology.value,
            "totalSteps": self.total_steps,
        }
        if self.warning:
            data["warning"] = self.warning
        return data
