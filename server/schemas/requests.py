"""Pydantic request models for FastAPI endpoints.

Field names are snake_case; the camelCase names used by API clients are accepted as aliases.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orchestrator.validation import is_well_formed_url

LEVEL_PATTERN = "^(beginner|intermediate|advanced)$"
FOCUS_PATTERN = "^(theory|practical|mixed)$"
DEPTH_PATTERN = "^(overview|detailed|comprehensive)$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def _check_url(value: str) -> str:
    if not is_well_formed_url(value):
        raise ValueError("Valid URL is required")
    return value.strip()


class RoadmapRequest(_CamelModel):
    topic: str = Field(..., min_length=1, max_length=200)
    level: str = Field("beginner", pattern=LEVEL_PATTERN)
    timeframe: str = Field("4-weeks", min_length=1, max_length=50)
    daily_time_minutes: int = Field(30, ge=5, le=120, alias="dailyTimeMinutes")
    focus: str = Field("practical", pattern=FOCUS_PATTERN)
    include_projects: bool = Field(True, alias="includeProjects")


class ScrapeRequest(_CamelModel):
    url: str = Field(..., min_length=1, max_length=2048)
    title: str = Field("Scraped Content", max_length=200)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_url(value)


class AnalyzeTopicRequest(_CamelModel):
    topic: str = Field(..., min_length=1, max_length=200)
    depth: str = Field("detailed", pattern=DEPTH_PATTERN)


class CompareResourcesRequest(_CamelModel):
    urls: list[str] = Field(..., min_length=2, max_length=5)
    topic: str | None = Field(None, max_length=200)

    @field_validator("urls")
    @classmethod
    def validate_urls(cls, value: list[str]) -> list[str]:
        return [_check_url(url) for url in value]


class SkillStrengthRequest(_CamelModel):
    topic: str = Field(..., min_length=1)
    strength_level: int = Field(..., ge=0, le=100, alias="strengthLevel")


class GenerateUserRoadmapRequest(_CamelModel):
    skill: str = Field("", max_length=200)
    level: str = Field("beginner", pattern=LEVEL_PATTERN)
    daily_time_minutes: int = Field(30, ge=5, le=120, alias="dailyTime")
    goal: str = Field("", max_length=500)
    concepts: list[SkillStrengthRequest] = Field(default_factory=list)
    use_research_agent: bool = Field(True, alias="useResearchAgent")
