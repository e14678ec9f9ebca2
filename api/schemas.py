from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RowUpdateModel(BaseModel):
    """Partial row; omitted fields keep their current value."""

    model_config = ConfigDict(populate_by_name=True)

    last_name: Optional[str] = Field(default=None, alias="lastName")
    goal: Optional[str] = None
    metric_goals: Optional[str] = Field(default=None, alias="metricGoals")
    weight_q: Optional[str] = Field(default=None, alias="weightQ")
    weight_year: Optional[str] = Field(default=None, alias="weightYear")
    q1: Optional[str] = None
    q2: Optional[str] = None
    q3: Optional[str] = None
    q4: Optional[str] = None
    year: Optional[str] = None


class ColumnModel(BaseModel):
    key: str
    label: str
    placeholder: str = ""
    multiline: bool = False
    filterable: bool = False


class TableMetaModel(BaseModel):
    name: str
    title: str
    page_size: int
    export_prefix: str
    columns: List[ColumnModel] = Field(default_factory=list)
