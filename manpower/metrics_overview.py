from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Union

import pandas as pd

from manpower.data import round_half_up
from manpower.filters import FEMALE, MALE
from manpower.records import UNIT_COLUMN, Record, Schema, records_frame


EXECUTIVE_CADRE = "Executive"


@dataclass(frozen=True)
class Metrics:
    total_employees: Union[int, float] = 0
    executives: Union[int, float] = 0
    departments: int = 0
    avg_age: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalEmployees": self.total_employees,
            "executives": self.executives,
            "departments": self.departments,
            "avgAge": self.avg_age,
        }


@dataclass(frozen=True)
class Overview:
    metrics: Metrics = field(default_factory=Metrics)
    department_series: List[Dict[str, Any]] = field(default_factory=list)
    gender_series: List[Dict[str, Any]] = field(default_factory=list)


def _as_count(value: Any) -> Union[int, float]:
    """Plain int when integral so payloads read 30 rather than 30.0."""
    if value is None or pd.isna(value):
        return 0
    out = float(value)
    return int(out) if out.is_integer() else out


def _unit_keys(frame: pd.DataFrame, schema: Schema) -> pd.Series:
    col = UNIT_COLUMN[schema]
    return frame[col][frame[col].notna() & (frame[col].astype(str) != "")]


def compute_metrics(records: Sequence[Record], schema: Schema) -> Metrics:
    frame = records_frame(records, schema)
    departments = int(_unit_keys(frame, schema).nunique())

    if schema is Schema.COHORT:
        total = float(frame["manpower_count"].sum())
        executives = float(frame.loc[frame["cadre"] == EXECUTIVE_CADRE, "manpower_count"].sum())
        weighted = float((frame["manpower_count"] * frame["average_age"]).sum())
        avg_age = weighted / total if total else 0.0
        return Metrics(
            total_employees=_as_count(total),
            executives=_as_count(executives),
            departments=departments,
            avg_age=round_half_up(avg_age, 1),
        )

    count = len(frame)
    executive_mask = frame["executive_type"].fillna("").astype(str).str.lower().str.contains("executive", regex=False)
    # Missing ages count as 0 in the mean; the record count is the denominator.
    age_sum = float(frame["age"].fillna(0).sum())
    avg_age = age_sum / count if count else 0.0
    return Metrics(
        total_employees=count,
        executives=int(executive_mask.sum()),
        departments=departments,
        avg_age=round_half_up(avg_age, 1),
    )


def department_series(records: Sequence[Record], schema: Schema) -> List[Dict[str, Any]]:
    frame = records_frame(records, schema)
    col = UNIT_COLUMN[schema]
    frame = frame.loc[_unit_keys(frame, schema).index]
    if frame.empty:
        return []
    if schema is Schema.COHORT:
        grouped = frame.groupby(col, sort=False)["manpower_count"].sum()
    else:
        grouped = frame.groupby(col, sort=False).size()
    return [{"label": str(label), "value": _as_count(value)} for label, value in grouped.items()]


def gender_series(records: Sequence[Record], schema: Schema) -> List[Dict[str, Any]]:
    frame = records_frame(records, schema)
    if frame.empty:
        return []
    if schema is Schema.COHORT:
        out: List[Dict[str, Any]] = []
        for label, col in [(MALE, "male_manpower"), (FEMALE, "female_manpower")]:
            total = float(frame[col].sum())
            if total > 0:
                out.append({"label": label, "value": _as_count(total)})
        return out
    genders = frame.dropna(subset=["gender"])
    if genders.empty:
        return []
    grouped = genders.groupby("gender", sort=False).size()
    return [{"label": str(label), "value": _as_count(value)} for label, value in grouped.items()]


def compute_overview(records: Sequence[Record], schema: Schema) -> Overview:
    records = list(records)
    return Overview(
        metrics=compute_metrics(records, schema),
        department_series=department_series(records, schema),
        gender_series=gender_series(records, schema),
    )
