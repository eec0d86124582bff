# taskminder/models/api_common.py

from pydantic import BaseModel, Field

class StatusResponse(BaseModel):
    """Acknowledges an operation that returns no entity."""
    status: bool = Field(..., description="True when the operation succeeded.")

class DetailResponse(BaseModel):
    """Error body."""
    detail: str = Field(..., description="Human-readable error message.")
