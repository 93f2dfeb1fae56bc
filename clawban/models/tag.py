"""Tag model - registry entry for task labels."""

from typing import Optional
from pydantic import BaseModel, Field


class Tag(BaseModel):
    """Tag model - normalized name with a name-derived color."""
    name: str = Field(..., description="Normalized tag name (trimmed, lowercase, unique)")
    color: str = Field(..., description="Hex color derived from the name")
    id: Optional[str] = Field(None, description="Tag ID (text)")
    created_at: Optional[str] = None
