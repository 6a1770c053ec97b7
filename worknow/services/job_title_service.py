"""Job title generation for employer postings.

Titles are produced by the LLM when one is configured and fall back to a
keyword table otherwise (no API key, quota exhausted, malformed answer).
AI results are cached by a hash of the inputs so reposted descriptions do not
cost another completion.
"""

from __future__ import annotations

import hashlib
import logging
import re

from pydantic import ValidationError

from worknow.adapters.llm.base import AbstractLLMClient
from worknow.core.errors import LLMAppError
from worknow.schemas.job_title import JobTitleAnalysis, JobTitleResponse
from worknow.services.cache_store import CacheStore

logger = logging.getLogger(__name__)

# Bump to invalidate cached titles when the prompt changes
PROMPT_VERSION = "v1"
CACHE_PREFIX = "job_title:"
DEFAULT_TITLE = "Общая вакансия"
RULE_BASED_CONFIDENCE = 0.6

SYSTEM_PROMPT = """
You are an expert job title generator for the Israeli job market.
Analyze job descriptions and generate concise, professional job titles in Russian.

Requirements:
- Titles in Russian, short and professional (max 5-7 words)
- Use specific job titles, not generic ones
- Consider the job location, requirements, and industry
- Never include salary, contact info, or extra details in the title

Respond with a JSON object: {"title": "<job title>"}
""".strip()

# First matching row wins
TITLE_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("повар", "кухня"), "Повар"),
    (("уборщик", "уборка"), "Уборщик"),
    (("официант", "ресторан"), "Официант"),
    (("грузчик", "склад"), "Грузчик"),
    (("водитель", "доставка"), "Водитель"),
    (("продавец", "магазин"), "Продавец-консультант"),
    (("кассир", "касса"), "Кассир"),
    (("строитель", "строительство"), "Строитель"),
    (("электрик",), "Электрик"),
    (("сантехник",), "Сантехник"),
    (("маляр",), "Маляр"),
    (("курьер",), "Курьер"),
    (("программист",), "Программист"),
    (("сиделка",), "Сиделка"),
    (("няня",), "Няня"),
    (("охранник",), "Охранник"),
    (("парикмахер",), "Парикмахер"),
    (("массажист",), "Массажист"),
)

SPECIFIC_KEYWORDS = (
    "повар", "официант", "грузчик", "водитель", "продавец", "кассир", "уборщик",
    "строитель", "электрик", "сантехник", "маляр", "курьер", "программист",
    "сиделка", "няня",
)
LANGUAGE_KEYWORDS = ("иврит", "английск", "русск")
EXPERIENCE_KEYWORDS = ("опыт",)
GENERIC_TITLE_MARKERS = ("общая", "работник")

_LOCATION_RE = re.compile(r"\b(?:в|на)\s+[а-яё]+", re.IGNORECASE)
_SALARY_RE = re.compile(r"\d+\s*(?:шек|₪|ils)", re.IGNORECASE)
_REQUIREMENT_RES = (
    re.compile(r"требуется\s+(.+?)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"требовани[яе]?\s*:\s*(.+?)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"обязательно\s+(.+?)$", re.IGNORECASE | re.MULTILINE),
)


def _hash_inputs(*parts: str | None) -> str:
    raw = "::".join([PROMPT_VERSION, *(p or "" for p in parts)])
    return hashlib.sha256(raw.encode("utf-8", errors="ignore")).hexdigest()


def extract_requirements(description: str) -> str:
    """Pull the first explicit requirement line out of a description."""
    for pattern in _REQUIREMENT_RES:
        match = pattern.search(description)
        if match:
            return match.group(1).strip()
    return ""


def analyze_description(description: str) -> JobTitleAnalysis:
    lowered = description.lower()
    return JobTitleAnalysis(
        has_specific_keywords=any(k in lowered for k in SPECIFIC_KEYWORDS),
        has_location=bool(_LOCATION_RE.search(description)),
        has_salary=bool(_SALARY_RE.search(description)),
        has_language_requirement=any(k in lowered for k in LANGUAGE_KEYWORDS),
        has_experience_requirement=any(k in lowered for k in EXPERIENCE_KEYWORDS),
    )


def rule_based_title(description: str) -> str:
    lowered = description.lower()
    for keywords, title in TITLE_RULES:
        if any(keyword in lowered for keyword in keywords):
            return title
    return DEFAULT_TITLE


def ai_confidence(title: str, description: str) -> float:
    """Score how well an AI title is grounded in the description.

    Share of title words (longer than two characters) found in the
    description, plus 0.2, minus 0.3 for generic titles, clamped to [0, 1].
    """
    if not title or not description:
        return 0.0

    lowered_title = title.lower()
    lowered_description = description.lower()

    words = [w for w in lowered_title.split(" ") if len(w) > 2]
    matching = [w for w in words if w in lowered_description]

    confidence = len(matching) / max(len(words), 1) + 0.2
    if any(marker in lowered_title for marker in GENERIC_TITLE_MARKERS):
        confidence -= 0.3

    return min(max(confidence, 0.0), 1.0)


def build_prompt(
    description: str,
    city: str | None = None,
    salary: str | None = None,
    requirements: str | None = None,
) -> str:
    lines = [
        "Analyze this job description and generate a professional job title in Russian:",
        "",
        f"Job Description: {description}",
        "",
    ]
    if city:
        lines.append(f"Location: {city}")
    if salary:
        lines.append(f"Salary: {salary} шек/час")
    if requirements:
        lines.append(f"Requirements: {requirements}")
    lines.append("")
    lines.append("Generate a concise, professional job title in Russian.")
    return "\n".join(lines)


class JobTitleService:
    """Generates job titles with an LLM, a cache in front and rules behind.

    Attributes:
        llm: LLM client, or None to always use the keyword rules.
        store: Cache for AI-generated titles.
    """

    def __init__(
        self,
        llm: AbstractLLMClient | None,
        store: CacheStore,
        *,
        cache_ttl_seconds: int | None = None,
    ) -> None:
        self.llm = llm
        self.store = store
        self.cache_ttl_seconds = cache_ttl_seconds

    def fallback(self, description: str) -> JobTitleResponse:
        return JobTitleResponse(
            title=rule_based_title(description),
            confidence=RULE_BASED_CONFIDENCE,
            method="rule-based",
            analysis=analyze_description(description),
        )

    async def _generate_with_llm(
        self, llm: AbstractLLMClient, description: str, prompt: str
    ) -> JobTitleResponse:
        raw = await llm.generate_json(prompt, system_prompt=SYSTEM_PROMPT, max_tokens=50)

        title = raw.get("title")
        if not isinstance(title, str) or not title.strip():
            raise LLMAppError(code="llm_missing_title", message="No title generated by AI")
        title = title.strip()

        return JobTitleResponse(
            title=title,
            confidence=ai_confidence(title, description),
            method="ai",
            analysis=analyze_description(description),
        )

    async def generate(
        self,
        description: str,
        *,
        city: str | None = None,
        salary: str | None = None,
        requirements: str | None = None,
    ) -> JobTitleResponse:
        """Produce a title for ``description``.

        Args:
            description: Job posting text.
            city: Optional city name for context.
            salary: Optional salary for context.
            requirements: Optional requirements; extracted when omitted.

        Returns:
            JobTitleResponse from cache, the LLM, or the keyword rules.
        """
        if self.llm is None:
            return self.fallback(description)

        requirements = requirements or extract_requirements(description)
        cache_key = f"{CACHE_PREFIX}{_hash_inputs(description, city, salary, requirements)}"

        cached = await self.store.get(cache_key)
        if isinstance(cached, dict):
            try:
                return JobTitleResponse.model_validate({**cached, "cached": True})
            except ValidationError:
                # Entry written with an older schema; regenerate and overwrite
                logger.info("job_titles.stale_cache_entry", extra={"cache_key": cache_key})

        prompt = build_prompt(description, city, salary, requirements)
        try:
            result = await self._generate_with_llm(self.llm, description, prompt)
        except LLMAppError as exc:
            logger.warning(
                "job_titles.ai_failed",
                extra={"error_code": exc.code, "error_message": exc.message},
            )
            return self.fallback(description)

        await self.store.set(cache_key, result.model_dump(), self.cache_ttl_seconds)
        logger.info(
            "job_titles.generated",
            extra={"method": result.method, "confidence": round(result.confidence, 2)},
        )
        return result
