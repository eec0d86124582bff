# taskminder/modules/tasks/models.py

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict, AliasChoices, field_validator

def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

class TaskInDB(BaseModel):
    """A task as stored in the `tasks` collection."""
    id: int = Field(..., validation_alias=AliasChoices("_id", "id"))
    title: str
    description: str = ""
    due_date: datetime
    is_completed: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _normalize_tz(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, v):
        return "" if v is None else v

    def to_document(self) -> dict:
        doc = self.model_dump(exclude={"id"})
        doc["_id"] = self.id
        return doc

class TaskUpdateInternal(BaseModel):
    """Partial update. Only fields the caller actually set (model_fields_set) are applied."""
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("due_date")
    @classmethod
    def _normalize_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

class Reminder(BaseModel):
    """One report emitted by the due-task scanner."""
    task_id: int
    title: str
    due_date: datetime

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_task(cls, task: TaskInDB) -> "Reminder":
        return cls(task_id=task.id, title=task.title, due_date=task.due_date)
