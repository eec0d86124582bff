# taskminder/models/auth.py

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

class Token(BaseModel):
    """JWT access token response."""
    access_token: str = Field(..., description="The JWT access token.")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer').")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.eyJzdWIiOiJhZG1pbiJ9.abcdef...",
                "token_type": "bearer"
            }
        }
    )

class TokenData(BaseModel):
    """Claims the API relies on once a bearer token is verified."""
    username: Optional[str] = None
