"""
Pydantic schemas for stored records read by the interviewer.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Resume(BaseModel):
    """A resume as stored by the upload pipeline."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Resume identifier")
    user_id: int = Field(..., description="Internal owner id (user_profiles.id)")
    title: str = Field(default="", description="User-facing resume title")
    file_name: str | None = Field(default=None, description="Original upload file name")
    is_primary: bool = Field(default=False, description="Whether this is the user's primary resume")
    created_at: datetime | None = Field(default=None, description="When the resume was uploaded")
