from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Source sheets were exported with inconsistent header casing.
FIELD_KEYS: Dict[str, Tuple[str, ...]] = {
    "name": ("name", "Name"),
    "email": ("email", "Email"),
    "reason": ("reason", "Reason"),
    "created_at": ("createdAt", "CreatedAt"),
}


class RawEntry(BaseModel):
    """
    A waitlist document as found in a source collection.

    Values are untrusted and keep whatever type the source stored. The
    lowercase key wins unless it is missing or null, then the capitalized
    key is used.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: Any = None
    email: Any = None
    reason: Any = None
    created_at: Any = None

    @model_validator(mode="before")
    @classmethod
    def _fold_casing(cls, data: Any) -> Any:
        if isinstance(data, RawEntry):
            return data
        if not isinstance(data, Mapping):
            raise ValueError(f"waitlist document must be a mapping, got {type(data).__name__}")
        folded: Dict[str, Any] = {}
        for field, keys in FIELD_KEYS.items():
            value = None
            for key in keys:
                if data.get(key) is not None:
                    value = data[key]
                    break
            folded[field] = value
        return folded


class NormalizedEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    email: str | None = None
    reason: str | None = None
    created_at: Union[datetime, str] = Field(alias="createdAt")
    # ISO rendering used for keying; empty when the source had no timestamp.
    timestamp_key: str = Field(default="", exclude=True)


class CanonicalRecord(NormalizedEntry):
    """One row of the canonical waitlist collection. Append-only."""

    dedupe_key: str = Field(alias="_dedupeKey")
    source_collection: str = Field(alias="_sourceCollection")

    @classmethod
    def from_entry(cls, entry: NormalizedEntry, dedupe_key: str, source_collection: str) -> "CanonicalRecord":
        return cls(
            **entry.model_dump(),
            timestamp_key=entry.timestamp_key,
            dedupe_key=dedupe_key,
            source_collection=source_collection,
        )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
