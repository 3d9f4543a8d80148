"""
API Models

Pydantic models used for request/response validation across the session
and chat endpoints.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Clear schema documentation for OpenAPI generation
"""

from __future__ import annotations

from typing import List, Literal, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------
# Session Models
# ---------------------------------------------------------------------

class IngestRequest(BaseModel):
    """
    Start-ingestion payload.
    """
    url: str = Field(..., min_length=1, description="Seed URL of the site to ingest.")

    model_config = ConfigDict(extra="forbid")

    @field_validator("url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        value = value.strip()
        parts = urlsplit(value)
        if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
            raise ValueError("url must be an absolute http(s) URL")
        return value


class IngestResponse(BaseModel):
    session_id: str
    status: Literal["scraping"] = "scraping"


class PageRef(BaseModel):
    title: str
    url: str


class SessionSummary(BaseModel):
    """
    Human-readable description of a ready knowledge base.
    """
    documents: int = Field(..., ge=0)
    chunks: int = Field(..., ge=0)
    pages: List[PageRef] = Field(default_factory=list)
    message: str


class SessionStatusResponse(BaseModel):
    session_id: str
    status: Literal["not_found", "scraping", "ready"]
    summary: Optional[SessionSummary] = None


# ---------------------------------------------------------------------
# Chat Models
# ---------------------------------------------------------------------

class ChatMetadata(BaseModel):
    """
    Optional caller metadata. Accepted and logged, never used for retrieval.
    """
    user_id: Optional[str] = Field(default=None, alias="userId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ChatRequest(BaseModel):
    """
    Query payload.
    """
    message: str = Field(..., min_length=1)
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    metadata: Optional[ChatMetadata] = None

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class SourceRef(BaseModel):
    """
    One cited source. ``id`` matches the ``[Sn]`` citations in the reply.
    """
    id: str
    title: str
    url: str
    score: float


class ChatResponse(BaseModel):
    reply: str
    sources: List[SourceRef] = Field(default_factory=list)
