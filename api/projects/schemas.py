"""
Pydantic schemas for project endpoints.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class ProjectDetailsRequest(BaseModel):
    project_id: UUID = Field(..., alias="projectId")
