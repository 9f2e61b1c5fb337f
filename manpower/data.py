from __future__ import annotations

import io
import logging
import math
import numbers
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from manpower.filters import derive_filter_options
from manpower.records import CohortRecord, PersonRecord, Record, Schema, parse_schema


logger = logging.getLogger(__name__)

ACCEPTED_SUFFIXES: Tuple[str, ...] = (".xlsx", ".xls")

# Ordered column spellings per canonical field; the first present, non-blank cell wins.
PERSON_ALIASES: Dict[str, Tuple[str, ...]] = {
    "department": ("Department", "department", "Dept", "dept"),
    "gender": ("Gender", "gender", "Sex", "sex"),
    "age_group": ("AgeGroup", "age_group", "Age Group"),
    "executive_type": ("ExecutiveType", "executive_type", "Executive Type"),
    "age": ("Age", "age"),
    "name": ("Name", "name", "Employee Name"),
}

COHORT_ALIASES: Dict[str, Tuple[str, ...]] = {
    "plant_unit": ("Plant/Unit", "Plant", "Unit", "PlantUnit", "plant_unit", "plantUnit", "Plant Name"),
    "cadre": ("Cadre", "cadre", "Cadre Type", "ExecutiveType", "Executive Type"),
    "year": ("Year", "year", "Date", "date", "As On Date"),
    "manpower_count": (
        "Manpower",
        "Total Manpower",
        "Manpower Count",
        "ManpowerCount",
        "manpower_count",
        "manpowerCount",
        "Total",
    ),
    "male_manpower": ("Male", "Male Manpower", "MaleManpower", "male_manpower", "maleManpower"),
    "female_manpower": ("Female", "Female Manpower", "FemaleManpower", "female_manpower", "femaleManpower"),
    "average_age": ("Average Age", "Avg Age", "Avg. Age", "AverageAge", "average_age", "averageAge"),
}

# Excel's day-zero for serial dates (accounts for the 1900 leap-year bug).
EXCEL_EPOCH = "1899-12-30"


class UploadError(ValueError):
    """The uploaded file was rejected as a whole."""


# ---------------- Cell coercion ----------------
def is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _column_key(name: object) -> str:
    return re.sub(r"[\s_\-/.]", "", str(name)).lower()


def resolve_alias(row: Mapping[str, object], aliases: Sequence[str]) -> object:
    for alias in aliases:
        if alias in row and not is_blank(row[alias]):
            return row[alias]
    # Tolerate case/spacing drift in headers.
    for alias in aliases:
        key = _column_key(alias)
        for col, value in row.items():
            if _column_key(col) == key and not is_blank(value):
                return value
    return None


def to_text(value: object) -> Optional[str]:
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def to_number(value: object) -> float:
    """Parse a numeric cell; anything unparseable or non-finite becomes 0."""
    if is_blank(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        out = pd.to_numeric(value, errors="coerce")
    except (TypeError, ValueError):
        return 0.0
    if pd.isna(out):
        return 0.0
    out = float(out)
    if not math.isfinite(out):
        return 0.0
    return out


def to_year(value: object) -> Optional[str]:
    """Calendar year of a date-like cell, or None when it cannot be parsed."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (datetime, date)):
        return str(value.year)
    try:
        if isinstance(value, numbers.Number):
            num = float(value)
            if num.is_integer() and 1000 <= num <= 9999:
                return str(int(num))
            stamp = pd.to_datetime(num, unit="D", origin=EXCEL_EPOCH, errors="coerce")
        else:
            text = str(value).strip()
            if re.fullmatch(r"\d{4}", text):
                return text
            stamp = pd.to_datetime(text, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if stamp is None or pd.isna(stamp):
        return None
    return str(stamp.year)


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


# ---------------- Row normalizer ----------------
def normalize_person_row(row: Mapping[str, object]) -> PersonRecord:
    raw_age = resolve_alias(row, PERSON_ALIASES["age"])
    return PersonRecord(
        department=to_text(resolve_alias(row, PERSON_ALIASES["department"])),
        gender=to_text(resolve_alias(row, PERSON_ALIASES["gender"])),
        age_group=to_text(resolve_alias(row, PERSON_ALIASES["age_group"])),
        executive_type=to_text(resolve_alias(row, PERSON_ALIASES["executive_type"])),
        age=None if raw_age is None else to_number(raw_age),
        name=to_text(resolve_alias(row, PERSON_ALIASES["name"])),
    )


def normalize_cohort_row(row: Mapping[str, object]) -> CohortRecord:
    return CohortRecord(
        plant_unit=to_text(resolve_alias(row, COHORT_ALIASES["plant_unit"])),
        cadre=to_text(resolve_alias(row, COHORT_ALIASES["cadre"])),
        year=to_year(resolve_alias(row, COHORT_ALIASES["year"])),
        manpower_count=to_number(resolve_alias(row, COHORT_ALIASES["manpower_count"])),
        male_manpower=to_number(resolve_alias(row, COHORT_ALIASES["male_manpower"])),
        female_manpower=to_number(resolve_alias(row, COHORT_ALIASES["female_manpower"])),
        average_age=to_number(resolve_alias(row, COHORT_ALIASES["average_age"])),
    )


def normalize_row(row: Mapping[str, object], schema: Schema) -> Record:
    if schema is Schema.COHORT:
        return normalize_cohort_row(row)
    return normalize_person_row(row)


def normalize_rows(rows: Iterable[Mapping[str, object]], schema: Schema | str) -> List[Record]:
    schema = parse_schema(schema)
    return [normalize_row(row, schema) for row in rows]


# ---------------- Dataset ----------------
@dataclass(frozen=True)
class Dataset:
    schema: Schema
    records: Tuple[Record, ...]
    filter_options: Dict[str, List[str]] = field(default_factory=dict)
    years: List[str] = field(default_factory=list)
    source_name: Optional[str] = None

    def __len__(self) -> int:
        return len(self.records)


def build_dataset(
    rows: Iterable[Mapping[str, object]],
    schema: Schema | str,
    *,
    source_name: Optional[str] = None,
) -> Dataset:
    schema = parse_schema(schema)
    records = normalize_rows(rows, schema)
    years: List[str] = []
    if schema is Schema.COHORT:
        years = list(dict.fromkeys(r.year for r in records if isinstance(r, CohortRecord) and r.year))
    dataset = Dataset(
        schema=schema,
        records=tuple(records),
        filter_options=derive_filter_options(records, schema),
        years=years,
        source_name=source_name,
    )
    logger.info("Loaded %d %s records from %s", len(dataset), schema.value, source_name or "<rows>")
    return dataset


# ---------------- Workbook reading ----------------
def read_workbook(content: bytes, filename: str) -> List[Dict[str, object]]:
    """First sheet of an Excel upload as a list of row dicts (blank cells -> None)."""
    if not filename or not filename.lower().endswith(ACCEPTED_SUFFIXES):
        raise UploadError("Please upload an Excel file (.xlsx or .xls)")
    try:
        df = pd.read_excel(io.BytesIO(content), sheet_name=0)
    except Exception as exc:
        raise UploadError("Error reading the Excel file. Please check the file format.") from exc
    df = df.dropna(how="all")
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def load_upload(content: bytes, filename: str, schema: Schema | str) -> Dataset:
    rows = read_workbook(content, filename)
    return build_dataset(rows, schema, source_name=filename)
