"""Prompt builders for summarization, roadmap synthesis, analysis and comparison."""

from models.roadmap import GenerationOptions
from tools.web.contracts import RankedResource, ScrapedContent, SearchResult

STATUS_PROBE_PROMPT = 'Respond with "OK" if you are working properly.'

ROADMAP_SCHEMA = """{
  "overview": "Brief description of the learning journey",
  "prerequisites": ["prerequisite 1", "prerequisite 2"],
  "steps": [
    {
      "week": number,
      "day": number,
      "title": "Step title",
      "description": "What the learner will do",
      "duration": "3-5 minutes",
      "type": "theory|practice|project|quiz|review",
      "concepts": ["concept1", "concept2"],
      "resources": ["resource name 1", "resource name 2"],
      "optional": false,
      "difficulty": "beginner|intermediate|advanced"
    }
  ],
  "projects": [
    {
      "title": "Project title",
      "description": "Project description",
      "week": number,
      "estimatedHours": number,
      "skills": ["skill1", "skill2"]
    }
  ],
  "milestones": [
    {
      "week": number,
      "title": "Milestone title",
      "description": "What the learner should have achieved"
    }
  ],
  "additionalResources": [
    {
      "title": "Resource title",
      "url": "resource url",
      "type": "article|video|course|book",
      "description": "Why this resource is helpful"
    }
  ]
}"""

ANALYSIS_SCHEMA = """{
  "overview": "Brief overview of the topic",
  "keyAreas": ["area1", "area2", "area3"],
  "difficulty": "beginner|intermediate|advanced",
  "timeToLearn": "estimated time to learn",
  "prerequisites": ["prerequisite1", "prerequisite2"],
  "careerRelevance": "how this topic relates to career development",
  "trends": "current trends and future outlook",
  "recommendations": "learning recommendations",
  "relatedTopics": ["related1", "related2", "related3"]
}"""

COMPARISON_SCHEMA = """{
  "comparison": {
    "bestForBeginners": "resource title",
    "mostComprehensive": "resource title",
    "mostPractical": "resource title",
    "bestStructure": "resource title"
  },
  "resourceRankings": [
    {
      "title": "resource title",
      "rank": 1,
      "strengths": ["strength1", "strength2"],
      "weaknesses": ["weakness1"],
      "recommendedFor": "audience description"
    }
  ],
  "summary": "Overall comparison summary"
}"""


def build_summary_prompt(content: str, title: str, max_chars: int = 2000) -> str:
    return (
        f'Summarize the following content about "{title}" in 2-3 sentences, '
        "focusing on key learning points and actionable insights:\n\n"
        f"{content[:max_chars]}\n\n"
        "Summary:"
    )


def format_resource_context(resources: list[RankedResource]) -> str:
    """One numbered line per resource: title, source and its digest."""
    return "\n".join(
        f"{index}. {r.title} ({r.source}): {r.digest}" for index, r in enumerate(resources, start=1)
    )


def _requirements(options: GenerationOptions) -> list[str]:
    return [
        f"- Level: {options.level}",
        f"- Timeframe: {options.timeframe}",
        f"- Daily time: {options.daily_time_minutes} minutes",
        f"- Focus: {options.focus}",
        f"- Include projects: {'true' if options.include_projects else 'false'}",
    ]


def build_roadmap_prompt(
    topic: str, resources: list[RankedResource], options: GenerationOptions
) -> str:
    lines = [
        f'You are an expert learning designer. Create a comprehensive, step-by-step roadmap for learning "{topic}".',
        "",
        "**Context from Web Research:**",
        format_resource_context(resources),
        "",
        "**Requirements:**",
        *_requirements(options),
        "",
        "**Instructions:**",
        "1. Create a practical, actionable roadmap",
        "2. Each step should be 3-5 minutes (microlearning format)",
        "3. Include variety: theory, practice, projects, quizzes",
        "4. Reference the web sources where relevant",
        "5. Make it suitable for different learning styles",
        "6. Include optional advanced topics",
        "7. Provide clear progression markers",
        "",
        "Return ONLY a JSON object with this exact structure:",
        ROADMAP_SCHEMA,
    ]
    return "\n".join(lines)


def build_fallback_prompt(topic: str, options: GenerationOptions) -> str:
    lines = [
        f'Create a comprehensive learning roadmap for "{topic}" without external sources.',
        "",
        *_requirements(options),
        "",
        "Each step should be 3-5 minutes (microlearning format).",
        "Return ONLY a JSON object with this structure:",
        ROADMAP_SCHEMA,
    ]
    return "\n".join(lines)


def build_basic_roadmap_prompt(
    skill: str, level: str, daily_minutes: int, goal: str, weak_topics: list[str]
) -> str:
    """Short 7-day plan used when the research agent is off or unavailable."""
    return (
        "You are an expert learning planner. Create a 7-day microlearning roadmap as JSON.\n"
        f"Profile: skill={skill}, level={level}, dailyTime={daily_minutes} minutes, goal={goal}.\n"
        f"Weak topics: {', '.join(weak_topics) or 'None'}.\n"
        'Return strictly JSON with shape: { "steps": [ { "day": number, "topic": string, '
        '"description": string, "type": "theory|practice|project|quiz|review", '
        '"concepts": string[] } ] }.\n'
        "Topics should be concise and practical. Concepts array lists 1-2 key ideas.\n"
    )


def build_analysis_prompt(
    topic: str, search_results: list[SearchResult], scraped: list[ScrapedContent]
) -> str:
    search_lines = "\n".join(
        f"{i}. {r.title}: {r.snippet}" for i, r in enumerate(search_results, start=1)
    )
    summary_lines = "\n".join(
        f"{i}. {c.title}: {c.summary}" for i, c in enumerate(scraped, start=1)
    )
    return (
        f'Based on the following research about "{topic}", provide a comprehensive analysis:\n\n'
        f"Search Results:\n{search_lines}\n\n"
        f"Scraped Content Summaries:\n{summary_lines}\n\n"
        f"Provide analysis in the following JSON format:\n{ANALYSIS_SCHEMA}"
    )


def build_comparison_prompt(topic: str, resources: list[ScrapedContent]) -> str:
    blocks = []
    for i, resource in enumerate(resources, start=1):
        blocks.append(
            f"Resource {i}: {resource.title}\n"
            f"  URL: {resource.url}\n"
            f"  Summary: {resource.summary}\n"
            f"  Word Count: {resource.word_count}\n"
        )
    return (
        f'Compare these learning resources for "{topic}":\n\n'
        + "\n".join(blocks)
        + f"\nProvide a comparison in JSON format:\n{COMPARISON_SCHEMA}"
    )
