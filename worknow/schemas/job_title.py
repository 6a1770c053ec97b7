"""Pydantic schemas for AI job-title generation."""

from typing import Literal

from pydantic import BaseModel, Field


class JobTitleRequest(BaseModel):
    """A job posting to derive a title from."""

    description: str = Field(
        ...,
        min_length=10,
        max_length=5000,
        description="Free-text job description as posted by the employer.",
    )
    city: str | None = Field(None, description="City the job is located in.")
    salary: str | None = Field(None, description="Hourly salary in shekels, as entered.")
    requirements: str | None = Field(
        None,
        description="Explicit requirements; extracted from the description when omitted.",
    )


class JobTitleAnalysis(BaseModel):
    """Signals detected in the description."""

    has_specific_keywords: bool
    has_location: bool
    has_salary: bool
    has_language_requirement: bool
    has_experience_requirement: bool


class JobTitleResponse(BaseModel):
    title: str = Field(..., description="Concise job title in Russian.")
    confidence: float = Field(..., ge=0.0, le=1.0)
    method: Literal["ai", "rule-based"]
    analysis: JobTitleAnalysis
    cached: bool = Field(False, description="Whether the result was served from cache.")
