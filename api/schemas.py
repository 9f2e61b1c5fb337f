from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class FilterSelectionModel(BaseModel):
    executiveType: List[str] = Field(default_factory=list)
    ageGroup: List[str] = Field(default_factory=list)
    gender: List[str] = Field(default_factory=list)
    department: List[str] = Field(default_factory=list)


class FilterValuesModel(BaseModel):
    values: List[str] = Field(default_factory=list)
