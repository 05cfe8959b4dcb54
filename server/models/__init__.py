"""Pydantic request/response models for the API and the message channel."""

from .commands import Command, parse_command
from .common import CamelModel, ReaderMetrics, ReaderThread, ThreadIdRequest
from .responses import (
    DeduplicateResponse,
    OkResponse,
    PageResponse,
    RecommendationsResponse,
)

__all__ = [
    "CamelModel",
    "Command",
    "DeduplicateResponse",
    "OkResponse",
    "PageResponse",
    "ReaderMetrics",
    "ReaderThread",
    "RecommendationsResponse",
    "ThreadIdRequest",
    "parse_command",
]
