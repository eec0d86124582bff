# taskminder/models/tasks.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ConfigDict

# --- API schemas ---

class TaskAPI(BaseModel):
    """Task as returned by the API."""
    id: int
    title: str
    description: str
    due_date: datetime
    is_completed: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TaskCreateAPI(BaseModel):
    """Payload to create a task."""
    title: str = Field(..., description="Non-empty label of the task.")
    description: Optional[str] = None
    due_date: datetime = Field(..., description="When the task is due (ISO-8601; naive values are UTC).")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "Pay rent",
            "description": "Transfer to landlord",
            "due_date": "2026-11-01T09:00:00Z",
        }
    })

class TaskUpdateAPI(BaseModel):
    """Payload to update a task. Omitted fields are left unchanged; an empty or null description clears it."""
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {"title": "Pay rent (November)"}
    })

class TaskPageAPI(BaseModel):
    """One page of tasks plus pagination metadata."""
    page: int
    limit: int
    total: int
    totalPages: int
    data: List[TaskAPI]
