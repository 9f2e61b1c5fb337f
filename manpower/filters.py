from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from manpower.records import (
    AGE_COLUMN,
    CADRE_COLUMN,
    UNIT_COLUMN,
    CohortRecord,
    PersonRecord,
    Record,
    Schema,
    records_frame,
)


logger = logging.getLogger(__name__)

# Public dimension names, in display order, mapped to FilterSelection fields.
DIMENSIONS: Tuple[str, ...] = ("executiveType", "ageGroup", "gender", "department")
_FIELD_BY_DIMENSION: Dict[str, str] = {
    "executiveType": "executive_type",
    "ageGroup": "age_group",
    "gender": "gender",
    "department": "department",
}

# Half-open [low, high) buckets. Nothing below 35 is selectable.
AGE_BUCKETS: List[Tuple[str, float, float]] = [
    ("35-40", 35.0, 40.0),
    ("40-45", 40.0, 45.0),
    ("45-50", 45.0, 50.0),
    ("50+", 50.0, math.inf),
]
AGE_BUCKET_LABELS: List[str] = [label for label, _, _ in AGE_BUCKETS]

MALE = "Male"
FEMALE = "Female"


@dataclass(frozen=True)
class FilterSelection:
    """User-chosen values per dimension. An empty tuple means no constraint."""

    executive_type: Tuple[str, ...] = ()
    age_group: Tuple[str, ...] = ()
    gender: Tuple[str, ...] = ()
    department: Tuple[str, ...] = ()

    def values(self, dimension: str) -> Tuple[str, ...]:
        return getattr(self, resolve_dimension(dimension))

    def with_dimension(self, dimension: str, values: Optional[Iterable[object]]) -> "FilterSelection":
        return replace(self, **{resolve_dimension(dimension): _as_str_tuple(values)})

    def active_dimensions(self) -> List[str]:
        return [dim for dim in DIMENSIONS if self.values(dim)]

    def is_empty(self) -> bool:
        return not self.active_dimensions()

    def to_dict(self) -> Dict[str, List[str]]:
        return {dim: list(self.values(dim)) for dim in DIMENSIONS}


def resolve_dimension(name: str) -> str:
    """Map ``executiveType`` or ``executive_type`` to the FilterSelection field."""
    if name in _FIELD_BY_DIMENSION:
        return _FIELD_BY_DIMENSION[name]
    if name in _FIELD_BY_DIMENSION.values():
        return name
    raise ValueError(f"Unknown filter dimension {name!r}; expected one of: {', '.join(DIMENSIONS)}")


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    out = [str(v) for v in values if v is not None]
    return tuple(dict.fromkeys(out))


def normalize_filters(raw: Optional[dict]) -> FilterSelection:
    raw = raw or {}
    selection = FilterSelection()
    for dim in DIMENSIONS:
        field_name = _FIELD_BY_DIMENSION[dim]
        if dim in raw:
            selection = selection.with_dimension(dim, raw.get(dim))
        elif field_name in raw:
            selection = selection.with_dimension(dim, raw.get(field_name))
    return selection


# ---------------- Age buckets ----------------
def age_bucket(age: Optional[float]) -> Optional[str]:
    if age is None or pd.isna(age):
        return None
    for label, low, high in AGE_BUCKETS:
        if low <= age < high:
            return label
    return None


def age_bucket_series(ages: pd.Series) -> pd.Series:
    edges = [low for _, low, _ in AGE_BUCKETS] + [np.inf]
    buckets = pd.cut(pd.to_numeric(ages, errors="coerce"), bins=edges, right=False, labels=AGE_BUCKET_LABELS)
    return buckets.astype(object)


# ---------------- Filter options ----------------
def _distinct(values: Iterable[Optional[str]]) -> List[str]:
    return list(dict.fromkeys(v for v in values if v))


def derive_filter_options(records: Sequence[Record], schema: Schema) -> Dict[str, List[str]]:
    """Distinct non-empty values per dimension, in first-seen order."""
    if schema is Schema.COHORT:
        cohort = [r for r in records if isinstance(r, CohortRecord)]
        genders: List[str] = []
        if any(r.male_manpower > 0 for r in cohort):
            genders.append(MALE)
        if any(r.female_manpower > 0 for r in cohort):
            genders.append(FEMALE)
        return {
            "executiveType": _distinct(r.cadre for r in cohort),
            "ageGroup": _distinct(age_bucket(r.average_age) for r in cohort),
            "gender": genders,
            "department": _distinct(r.plant_unit for r in cohort),
        }

    people = [r for r in records if isinstance(r, PersonRecord)]
    return {
        "executiveType": _distinct(r.executive_type for r in people),
        "ageGroup": _distinct(r.age_group or age_bucket(r.age) for r in people),
        "gender": _distinct(r.gender for r in people),
        "department": _distinct(r.department for r in people),
    }


# ---------------- Filter engine ----------------
def _dimension_mask(frame: pd.DataFrame, schema: Schema, dimension: str, values: Tuple[str, ...]) -> pd.Series:
    if dimension == "executiveType":
        return frame[CADRE_COLUMN[schema]].isin(values)
    if dimension == "department":
        return frame[UNIT_COLUMN[schema]].isin(values)
    if dimension == "gender":
        if schema is Schema.COHORT:
            male = (frame["male_manpower"] > 0) & (MALE in values)
            female = (frame["female_manpower"] > 0) & (FEMALE in values)
            return male | female
        return frame["gender"].isin(values)
    if dimension == "ageGroup":
        mask = age_bucket_series(frame[AGE_COLUMN[schema]]).isin(values)
        if schema is Schema.PERSON:
            mask = mask | frame["age_group"].isin(values)
        return mask
    raise ValueError(f"Unknown filter dimension {dimension!r}")


def apply_filters(records: Sequence[Record], schema: Schema, selection: FilterSelection) -> List[Record]:
    """Keep records matching every active dimension (any value within a dimension).

    Relative order is preserved. With no active dimension the input comes back unchanged.
    """
    records = list(records)
    active = selection.active_dimensions()
    if not active or not records:
        return records

    frame = records_frame(records, schema)
    mask = pd.Series(True, index=frame.index)
    for dim in active:
        mask &= _dimension_mask(frame, schema, dim, selection.values(dim))

    kept = [r for r, keep in zip(records, mask.tolist()) if keep]
    logger.debug("filters %s kept %d of %d %s records", selection.to_dict(), len(kept), len(records), schema.value)
    return kept
