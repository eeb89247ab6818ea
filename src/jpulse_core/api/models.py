"""API request and response models."""

from typing import Any

from pydantic import BaseModel, Field


class ExpandRequest(BaseModel):
    """Template text to expand with optional extra context."""

    text: str
    context: dict[str, Any] = Field(default_factory=dict)


class ExpandResponse(BaseModel):
    """Expansion result."""

    success: bool = True
    text: str


class HelperInfo(BaseModel):
    """One registered helper."""

    name: str
    type: str
    source: str
    description: str = ""
    example: str = ""


class HelperList(BaseModel):
    """Registry listing."""

    helpers: list[HelperInfo]
    stats: dict[str, Any]


class EngineHealth(BaseModel):
    """Engine status for monitoring."""

    status: str = "ok"
    version: str
    helpers: dict[str, Any]
    cache: dict[str, Any]
    plugins: list[str] = Field(default_factory=list)
