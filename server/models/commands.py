"""
Command models: one variant per message type, discriminated on "type".

Messages from the browser extension (e.g. {"type": "reader/heartbeat", ...})
validate into exactly one variant; unknown types are rejected.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from .common import CamelModel, ReaderMetrics, ReaderThread


class ReaderOpen(CamelModel):
    type: Literal["reader/open"]
    thread: ReaderThread
    metrics: ReaderMetrics = Field(default_factory=ReaderMetrics)


class ReaderHeartbeat(CamelModel):
    type: Literal["reader/heartbeat"]
    thread: ReaderThread
    metrics: ReaderMetrics = Field(default_factory=ReaderMetrics)


class ReaderClose(CamelModel):
    type: Literal["reader/close"]
    thread: ReaderThread
    metrics: ReaderMetrics = Field(default_factory=ReaderMetrics)


class _RecommendQuery(CamelModel):
    limit: int = Field(default=10, ge=1, le=100)
    forum: str = "all"
    force_refresh: bool = False


class RecommendContent(_RecommendQuery):
    type: Literal["recommend/content"]


class RecommendTags(_RecommendQuery):
    type: Literal["recommend/tags"]


class RecommendMixed(_RecommendQuery):
    type: Literal["recommend/mixed"]


class RecommendClicked(CamelModel):
    type: Literal["recommend/clicked"]
    thread_id: str = Field(min_length=1)
    title: Optional[str] = None


class RecommendClearClicked(CamelModel):
    type: Literal["recommend/clear-clicked"]


class DislikeAdd(CamelModel):
    type: Literal["dislike/add"]
    thread_id: str = Field(min_length=1)
    title: Optional[str] = None


class DislikeRemove(CamelModel):
    type: Literal["dislike/remove"]
    thread_id: str = Field(min_length=1)
    title: Optional[str] = None


class DislikeList(CamelModel):
    type: Literal["dislike/list"]


class DbExport(CamelModel):
    type: Literal["db/export"]


class DbImport(CamelModel):
    type: Literal["db/import"]
    data: Dict[str, Any]


class DbClear(CamelModel):
    type: Literal["db/clear"]


class DbDeduplicate(CamelModel):
    type: Literal["db/deduplicate"]


class FetchTrigger(CamelModel):
    type: Literal["fetch/trigger"]


class FetchStats(CamelModel):
    type: Literal["fetch/stats"]


class DebugCheck(CamelModel):
    type: Literal["debug/check"]


Command = Annotated[
    Union[
        ReaderOpen,
        ReaderHeartbeat,
        ReaderClose,
        RecommendContent,
        RecommendTags,
        RecommendMixed,
        RecommendClicked,
        RecommendClearClicked,
        DislikeAdd,
        DislikeRemove,
        DislikeList,
        DbExport,
        DbImport,
        DbClear,
        DbDeduplicate,
        FetchTrigger,
        FetchStats,
        DebugCheck,
    ],
    Field(discriminator="type"),
]

command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(data: Dict[str, Any]) -> Command:
    """Validate a raw message into its command variant (raises ValidationError)."""
    return command_adapter.validate_python(data)
