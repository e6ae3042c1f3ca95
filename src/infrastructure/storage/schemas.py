"""Pydantic models for the collection file, current and legacy layouts."""

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.entities.collection import Collection
from domain.entities.task import ROOT_SCOPE, Task, TaskStatus

CURRENT_VERSION = 3

# Go-style timestamps carry nanoseconds; datetime keeps microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _trim_fraction(value: Any) -> Any:
    if isinstance(value, str):
        return _FRACTION_RE.sub(r"\1", value)
    return value


class TaskRecord(BaseModel):
    """One task in the current flat layout."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str = Field(..., min_length=1)
    parent_id: str = Field(default=ROOT_SCOPE, alias="parentId")
    position: int = Field(default=0, ge=0)
    text: str = ""
    status: TaskStatus = TaskStatus.PENDING
    modified: datetime

    @field_validator("modified", mode="before")
    @classmethod
    def trim_modified(cls, value: Any) -> Any:
        return _trim_fraction(value)

    @field_validator("text")
    @classmethod
    def require_utf8(cls, value: str) -> str:
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("text is not valid UTF-8") from None
        return value

    @classmethod
    def from_entity(cls, task: Task) -> "TaskRecord":
        """Convert domain entity to a file record."""
        return cls(
            uid=task.uid,
            parent_id=task.parent_id,
            position=task.position,
            text=task.text,
            status=task.status,
            modified=task.modified,
        )

    def to_entity(self) -> Task:
        """Convert file record to domain entity."""
        return Task(
            uid=self.uid,
            parent_id=self.parent_id,
            position=self.position,
            text=self.text,
            status=self.status,
            modified=self.modified,
        )


class TaskDocument(BaseModel):
    """The whole collection file in the current layout."""

    version: Literal[3] = CURRENT_VERSION
    items: list[TaskRecord] = Field(default_factory=list)

    @classmethod
    def from_collection(cls, collection: Collection) -> "TaskDocument":
        """Serialize in depth-first tree order; unreachable records go last."""
        ordered = list(collection.walk())
        seen = {task.uid for task in ordered}
        ordered.extend(task for task in collection if task.uid not in seen)
        return cls(items=[TaskRecord.from_entity(task) for task in ordered])

    def to_collection(self) -> Collection:
        return Collection(record.to_entity() for record in self.items)


# -------------------- legacy layouts --------------------
class RegistryRecord(BaseModel):
    """Flat record without positions; status lives in a statuses map."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uid: str = Field(..., min_length=1)
    parent_id: str = Field(default=ROOT_SCOPE, alias="parentId")
    text: str = ""
    statuses: dict[str, str] | None = None
    modified: datetime | None = None

    @field_validator("modified", mode="before")
    @classmethod
    def trim_modified(cls, value: Any) -> Any:
        return _trim_fraction(value)


class RegistryDocument(BaseModel):
    """Flat layout written before positions were persisted."""

    model_config = ConfigDict(extra="ignore")

    items: list[RegistryRecord] = Field(default_factory=list)


class NestedTaskRecord(BaseModel):
    """Tree layout: every task embeds its children under ``items``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    parent_id: str = Field(default=ROOT_SCOPE, alias="parentId")
    position: int = Field(default=0, ge=0)
    text: str = ""
    status: str | None = None
    statuses: dict[str, str] | None = None
    modified: datetime | None = None
    items: list["NestedTaskRecord"] | None = None

    @field_validator("modified", mode="before")
    @classmethod
    def trim_modified(cls, value: Any) -> Any:
        return _trim_fraction(value)


class NestedDocument(BaseModel):
    """Tree layout wrapped in an object under ``todos``."""

    model_config = ConfigDict(extra="ignore")

    todos: list[NestedTaskRecord] = Field(default_factory=list)


class NumberedTaskRecord(BaseModel):
    """Oldest layout: a flat array with integer ids doubling as positions."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., ge=0)
    text: str = ""
    status: str | None = None
    modified: datetime | None = None

    @field_validator("modified", mode="before")
    @classmethod
    def trim_modified(cls, value: Any) -> Any:
        return _trim_fraction(value)
