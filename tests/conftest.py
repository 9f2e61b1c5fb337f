import io

import pandas as pd
import pytest

from manpower.data import build_dataset


COHORT_ROWS = [
    {
        "Plant/Unit": "BSP",
        "Cadre": "Executive",
        "Year": "2023-04-01",
        "Manpower": 10,
        "Male": 8,
        "Female": 2,
        "Average Age": 42,
    },
    {
        "Plant/Unit": "DSP",
        "Cadre": "Non-Executive",
        "Year": "2024-04-01",
        "Manpower": 20,
        "Male": 15,
        "Female": 5,
        "Average Age": 30,
    },
]

PERSON_ROWS = [
    {"Name": "A. Rao", "Department": "IT", "Gender": "Male", "Age": 36, "ExecutiveType": "Executive"},
    {"Name": "B. Sen", "department": "HR", "gender": "Female", "age": "41", "executive_type": "Non-Executive"},
    {"Name": "C. Das", "Department": "IT", "Gender": "Female", "Age": 52, "Executive Type": "Senior Executive"},
    {"Name": "D. Roy", "Department": "Finance", "Gender": "Male", "Age": "n/a", "ExecutiveType": "Staff"},
]


def workbook_bytes(rows, *, sheet_name="Sheet1"):
    buf = io.BytesIO()
    pd.DataFrame(rows).to_excel(buf, sheet_name=sheet_name, index=False)
    return buf.getvalue()


@pytest.fixture
def cohort_rows():
    return [dict(r) for r in COHORT_ROWS]


@pytest.fixture
def person_rows():
    return [dict(r) for r in PERSON_ROWS]


@pytest.fixture
def cohort_dataset(cohort_rows):
    return build_dataset(cohort_rows, "cohort", source_name="cohort.xlsx")


@pytest.fixture
def person_dataset(person_rows):
    return build_dataset(person_rows, "person", source_name="people.xlsx")


@pytest.fixture
def make_workbook():
    return workbook_bytes
