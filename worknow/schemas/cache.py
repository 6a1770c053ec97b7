"""Response schemas for health and cache administration endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RedisHealthResponse(BaseModel):
    status: str = Field(..., description="Always 'healthy' when the API itself answered.")
    redis: dict[str, Any] = Field(..., description="Result of the Redis ping/info check.")
    timestamp: str


class CacheStatsResponse(BaseModel):
    total_keys: int
    job_cache_keys: int
    session_keys: int
    memory: dict[str, Any] | str
    timestamp: str


class CacheActionResponse(BaseModel):
    message: str
    timestamp: str
