"""
Base model shared by persisted records.

Fields are snake_case in Python; camelCase keys from browser-extension exports
(threadId, dwellMsEffective, ...) are accepted on validation.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..utils.scores import ensure_utc

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class RecordModel(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_record(self) -> dict:
        """JSON-safe dict with snake_case keys, as written by the stores."""
        return self.model_dump(mode="json")
