"""Input checks for the research operations. Run before any pipeline work."""

from urllib.parse import urlparse

from models.research import DEPTHS
from models.roadmap import FOCUS_MODES, LEVELS, GenerationOptions
from orchestrator.errors import ValidationError

MAX_TOPIC_CHARS = 200
MIN_DAILY_MINUTES = 5
MAX_DAILY_MINUTES = 120
MIN_SEARCH_LIMIT = 1
MAX_SEARCH_LIMIT = 20
MIN_COMPARE_URLS = 2
MAX_COMPARE_URLS = 5


def validate_topic(topic: str, field: str = "topic") -> str:
    if not isinstance(topic, str) or not topic.strip():
        raise ValidationError(f"{field} is required", field=field)
    topic = topic.strip()
    if len(topic) > MAX_TOPIC_CHARS:
        raise ValidationError(
            f"{field} must be 1-{MAX_TOPIC_CHARS} characters", field=field
        )
    return topic


def is_well_formed_url(url: str) -> bool:
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def validate_url(url: str, field: str = "url") -> str:
    if not is_well_formed_url(url):
        raise ValidationError("Valid URL is required", field=field)
    return url.strip()


def validate_options(options: GenerationOptions) -> GenerationOptions:
    if options.level not in LEVELS:
        raise ValidationError(
            f"level must be one of: {', '.join(LEVELS)}", field="level"
        )
    if options.focus not in FOCUS_MODES:
        raise ValidationError(
            f"focus must be one of: {', '.join(FOCUS_MODES)}", field="focus"
        )
    if isinstance(options.daily_time_minutes, bool) or not isinstance(
        options.daily_time_minutes, int
    ):
        raise ValidationError("dailyTimeMinutes must be an integer", field="dailyTimeMinutes")
    if not MIN_DAILY_MINUTES <= options.daily_time_minutes <= MAX_DAILY_MINUTES:
        raise ValidationError(
            f"Daily time must be between {MIN_DAILY_MINUTES}-{MAX_DAILY_MINUTES} minutes",
            field="dailyTimeMinutes",
        )
    if not isinstance(options.timeframe, str) or not options.timeframe.strip():
        raise ValidationError("timeframe must be a non-empty string", field="timeframe")
    return options


def validate_depth(depth: str) -> str:
    if depth not in DEPTHS:
        raise ValidationError(f"depth must be one of: {', '.join(DEPTHS)}", field="depth")
    return depth


def validate_search_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError("limit must be an integer", field="limit")
    if not MIN_SEARCH_LIMIT <= limit <= MAX_SEARCH_LIMIT:
        raise ValidationError(
            f"Limit must be between {MIN_SEARCH_LIMIT}-{MAX_SEARCH_LIMIT}", field="limit"
        )
    return limit


def validate_compare_urls(urls: list[str]) -> list[str]:
    if not isinstance(urls, list) or not MIN_COMPARE_URLS <= len(urls) <= MAX_COMPARE_URLS:
        raise ValidationError(
            f"URLs array with {MIN_COMPARE_URLS}-{MAX_COMPARE_URLS} URLs is required",
            field="urls",
        )
    return [validate_url(url, field="urls") for url in urls]
