from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import ClassVar, Iterable, List, Optional, Union

import pandas as pd


class Schema(str, Enum):
    """Which upload surface produced a dataset.

    ``person`` rows describe one employee each; ``cohort`` rows carry
    pre-aggregated manpower counts for a plant/unit and cadre.
    """

    PERSON = "person"
    COHORT = "cohort"


def parse_schema(value: Union[str, Schema]) -> Schema:
    if isinstance(value, Schema):
        return value
    try:
        return Schema(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in Schema)
        raise ValueError(f"Unknown schema {value!r}; expected one of: {allowed}") from None


@dataclass(frozen=True)
class PersonRecord:
    department: Optional[str] = None
    gender: Optional[str] = None
    age_group: Optional[str] = None
    executive_type: Optional[str] = None
    age: Optional[float] = None
    name: Optional[str] = None

    kind: ClassVar[Schema] = Schema.PERSON


@dataclass(frozen=True)
class CohortRecord:
    plant_unit: Optional[str] = None
    cadre: Optional[str] = None
    year: Optional[str] = None
    manpower_count: float = 0.0
    male_manpower: float = 0.0
    female_manpower: float = 0.0
    average_age: float = 0.0

    kind: ClassVar[Schema] = Schema.COHORT


Record = Union[PersonRecord, CohortRecord]

RECORD_TYPES = {Schema.PERSON: PersonRecord, Schema.COHORT: CohortRecord}

# Column holding the plant/department key, the cadre key and the scalar age per schema.
UNIT_COLUMN = {Schema.PERSON: "department", Schema.COHORT: "plant_unit"}
CADRE_COLUMN = {Schema.PERSON: "executive_type", Schema.COHORT: "cadre"}
AGE_COLUMN = {Schema.PERSON: "age", Schema.COHORT: "average_age"}


def scalar_age(record: Record) -> Optional[float]:
    if record.kind is Schema.COHORT:
        return record.average_age  # type: ignore[union-attr]
    return record.age  # type: ignore[union-attr]


def records_frame(records: Iterable[Record], schema: Schema) -> pd.DataFrame:
    """Tabulate records of one schema; an empty input still carries every column."""
    columns: List[str] = [f.name for f in fields(RECORD_TYPES[schema])]
    rows = [asdict(r) for r in records]
    frame = pd.DataFrame(rows, columns=columns)
    if schema is Schema.COHORT:
        for col in ["manpower_count", "male_manpower", "female_manpower", "average_age"]:
            frame[col] = pd.to_numeric(frame[col], errors="coerce").fillna(0.0).astype(float)
    else:
        frame["age"] = pd.to_numeric(frame["age"], errors="coerce")
    return frame
