"""Curriculum generation: prompt, AI call and reply validation."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from pathgen.clients.gemini import GeminiClient
from pathgen.config import get_settings
from pathgen.errors import FormatError
from pathgen.schemas.generation import (
    DraftCurriculum,
    DraftLevel,
    DraftModule,
    DraftProject,
)

logger = logging.getLogger(__name__)

LEVEL_COUNT = 3

_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def build_prompt(topic: str, modules_per_level: int) -> str:
    """Fixed-template prompt asking for a three-level JSON curriculum."""
    return f"""You are an expert learning path generator. Given a topic, create a comprehensive learning path with three levels: Beginner, Intermediate, and Advanced.
Each level must contain exactly {modules_per_level} modules.
For each module, provide:
1. A concise module title (3-7 words).
2. A brief module description (1-2 sentences).
3. A YouTube link. You MUST provide a highly specific YouTube search query URL that leads to relevant videos for the module's topic, for example "https://www.youtube.com/results?search_query=advanced+javascript+closures+tutorial". Do NOT provide direct links to YouTube channels or individual videos. The link must be a YouTube search results page URL in the "youtubeUrl" field.
4. One relevant GitHub repository link (a project, library or collection of resources related to the module topic). If no specific repository fits, link a relevant GitHub topic page (e.g. https://github.com/topics/react).

Additionally, for each level provide 4 to 5 distinct projects.
For each project, provide:
1. A concise project title (3-7 words).
2. A brief project description (2-3 sentences) explaining what the project is about and its learning objectives.
3. A direct GitHub repository link containing the source code for the project. This must be an actual code repository, not a topic page or user profile.

The topic is: "{topic}"

Return STRICTLY the following JSON shape and nothing else: no explanatory text, no markdown code fences, no comments.

{{
  "topic": "{topic}",
  "levels": [
    {{
      "name": "Beginner",
      "modules": [
        {{
          "title": "Module Title Example",
          "description": "Module description example.",
          "youtubeUrl": "https://www.youtube.com/results?search_query=example+search",
          "githubUrl": "https://github.com/example/repo"
        }}
      ],
      "projects": [
        {{
          "title": "Beginner Project Example",
          "description": "A simple project to practice basic concepts.",
          "githubUrl": "https://github.com/example/beginner-project-source-code"
        }}
      ]
    }},
    {{"name": "Intermediate", "modules": [], "projects": []}},
    {{"name": "Advanced", "modules": [], "projects": []}}
  ]
}}
"""


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    if match and match.group(2):
        return match.group(2).strip()
    return text


def _str_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_list(level: dict, key: str) -> list:
    items = level.get(key)
    if not isinstance(items, list):
        logger.warning(
            "Level %r has missing or malformed %s; using an empty list",
            level.get("name"),
            key,
        )
        return []
    return items


def parse_curriculum(raw: str, topic: str) -> DraftCurriculum:
    """Validate and normalize an AI reply into a draft curriculum.

    Unparseable JSON, a level count other than three, or a nameless level
    raise ``FormatError``. Missing module/project lists degrade to empty.
    """
    try:
        data = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as exc:
        logger.error("AI reply is not valid JSON: %s", exc)
        raise FormatError(
            "Failed to parse the generated curriculum: the reply was not valid JSON"
        ) from exc

    if not isinstance(data, dict):
        raise FormatError("Generated curriculum must be a JSON object")

    levels = data.get("levels")
    if not isinstance(levels, list) or len(levels) != LEVEL_COUNT:
        raise FormatError(
            f"Invalid format received from the AI: expected {LEVEL_COUNT} levels",
            details={"levels": len(levels) if isinstance(levels, list) else None},
        )

    draft_levels = []
    for level in levels:
        if not isinstance(level, dict) or not _str_or_none(level.get("name")):
            raise FormatError("Invalid level structure: level name is missing")

        modules = []
        for index, module in enumerate(_as_list(level, "modules")):
            if not isinstance(module, dict):
                logger.warning("Skipping non-object module %d in %r", index, level["name"])
                continue
            if not module.get("title") or not module.get("description"):
                logger.warning(
                    "Module %d in level %r may be missing title or description",
                    index + 1,
                    level["name"],
                )
            modules.append(
                DraftModule(
                    title=_str_or_none(module.get("title")) or "Untitled Module",
                    description=_str_or_none(module.get("description")) or "",
                    youtube_url=_str_or_none(module.get("youtubeUrl")),
                    github_url=_str_or_none(module.get("githubUrl")),
                    is_completed=False,
                    notes="",
                )
            )

        projects = []
        for project in _as_list(level, "projects"):
            if not isinstance(project, dict):
                project = {}
            projects.append(
                DraftProject(
                    title=_str_or_none(project.get("title")) or "Untitled Project",
                    description=_str_or_none(project.get("description"))
                    or "No description provided.",
                    github_url=_str_or_none(project.get("githubUrl")) or "#",
                )
            )

        if not modules:
            logger.warning("Level %r has no modules", level["name"])
        if not projects:
            logger.warning("Level %r has no projects", level["name"])

        draft_levels.append(
            DraftLevel(name=level["name"].strip(), modules=modules, projects=projects)
        )

    return DraftCurriculum(
        topic=_str_or_none(data.get("topic")) or topic,
        levels=draft_levels,
    )


class CurriculumGenerator:
    """Builds a draft curriculum for a topic. Nothing is persisted."""

    def __init__(self, client: Optional[GeminiClient] = None):
        self.settings = get_settings()
        self.client = client or GeminiClient()

    async def generate(self, topic: str) -> DraftCurriculum:
        topic = topic.strip()
        prompt = build_prompt(topic, self.settings.modules_per_level)
        logger.info("Generating curriculum for topic %r", topic)
        raw = await self.client.generate_json(prompt)
        return parse_curriculum(raw, topic)
