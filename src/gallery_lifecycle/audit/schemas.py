"""Pydantic schemas for deletion audit records"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class DeletionAction(str, Enum):
    """Lifecycle transition recorded by a DeletionEvent"""
    TRASHED = "trashed"
    RESTORED = "restored"
    DELETED = "deleted"


class DeletionEventResponse(BaseModel):
    """Read model for a DeletionEvent row."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    event_id: Optional[str] = None
    action: DeletionAction
    reason: Optional[str] = None
    executed_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_json")
