import math

from manpower.data import build_dataset
from manpower.metrics_overview import (
    Metrics,
    compute_metrics,
    compute_overview,
    department_series,
    gender_series,
)
from manpower.records import Schema


def test_cohort_metrics_are_manpower_weighted(cohort_dataset):
    metrics = compute_metrics(cohort_dataset.records, Schema.COHORT)
    assert metrics == Metrics(total_employees=30, executives=10, departments=2, avg_age=34.0)
    assert metrics.to_dict() == {"totalEmployees": 30, "executives": 10, "departments": 2, "avgAge": 34.0}


def test_cohort_executives_need_exact_cadre():
    dataset = build_dataset(
        [
            {"Plant": "BSP", "Cadre": "Executive", "Manpower": 3},
            {"Plant": "BSP", "Cadre": "executive", "Manpower": 4},
            {"Plant": "BSP", "Cadre": "Non-Executive", "Manpower": 5},
        ],
        "cohort",
    )
    assert compute_metrics(dataset.records, Schema.COHORT).executives == 3


def test_person_metrics(person_dataset):
    metrics = compute_metrics(person_dataset.records, Schema.PERSON)
    assert metrics.total_employees == 4
    # "Non-Executive" also contains "executive".
    assert metrics.executives == 3
    assert metrics.departments == 3
    assert metrics.avg_age == 32.3


def test_series_follow_first_seen_order(person_dataset, cohort_dataset):
    assert department_series(person_dataset.records, Schema.PERSON) == [
        {"label": "IT", "value": 2},
        {"label": "HR", "value": 1},
        {"label": "Finance", "value": 1},
    ]
    assert gender_series(person_dataset.records, Schema.PERSON) == [
        {"label": "Male", "value": 2},
        {"label": "Female", "value": 2},
    ]
    assert department_series(cohort_dataset.records, Schema.COHORT) == [
        {"label": "BSP", "value": 10},
        {"label": "DSP", "value": 20},
    ]
    assert gender_series(cohort_dataset.records, Schema.COHORT) == [
        {"label": "Male", "value": 23},
        {"label": "Female", "value": 7},
    ]


def test_department_series_sums_to_total():
    dataset = build_dataset(
        [
            {"Plant": "BSP", "Manpower": 12, "Average Age": 41},
            {"Plant": "DSP", "Manpower": 7.5, "Average Age": 39},
            {"Plant": "BSP", "Manpower": 3, "Average Age": 55},
            {"Plant": "RSP", "Manpower": 0, "Average Age": 47},
        ],
        "cohort",
    )
    overview = compute_overview(dataset.records, Schema.COHORT)
    assert sum(p["value"] for p in overview.department_series) == overview.metrics.total_employees
    assert [p["label"] for p in overview.department_series] == ["BSP", "DSP", "RSP"]


def test_weighted_average_stays_within_record_ages():
    dataset = build_dataset(
        [
            {"Plant": "BSP", "Manpower": 120, "Average Age": 44.2},
            {"Plant": "DSP", "Manpower": 3, "Average Age": 58.9},
            {"Plant": "ISP", "Manpower": 40, "Average Age": 36.1},
        ],
        "cohort",
    )
    ages = [r.average_age for r in dataset.records]
    avg = compute_metrics(dataset.records, Schema.COHORT).avg_age
    assert min(ages) <= avg <= max(ages)


def test_zero_total_manpower_gives_zero_average():
    dataset = build_dataset([{"Plant": "BSP", "Manpower": 0, "Average Age": 45}], "cohort")
    metrics = compute_metrics(dataset.records, Schema.COHORT)
    assert metrics.avg_age == 0.0
    assert metrics.departments == 1


def test_empty_inputs_give_zeroes_and_no_series():
    for schema in (Schema.PERSON, Schema.COHORT):
        overview = compute_overview([], schema)
        assert overview.metrics == Metrics(total_employees=0, executives=0, departments=0, avg_age=0.0)
        assert not math.isnan(overview.metrics.avg_age)
        assert overview.department_series == []
        assert overview.gender_series == []


def test_records_without_unit_are_not_counted_as_departments():
    dataset = build_dataset([{"Department": "IT"}, {"Name": "no dept"}], "person")
    metrics = compute_metrics(dataset.records, Schema.PERSON)
    assert metrics.total_employees == 2
    assert metrics.departments == 1


def test_counts_stay_integral_in_the_payload(cohort_dataset, person_dataset):
    cohort = compute_metrics(cohort_dataset.records, Schema.COHORT)
    person = compute_metrics(person_dataset.records, Schema.PERSON)
    for value in (cohort.total_employees, cohort.executives, person.total_employees, person.executives):
        assert isinstance(value, int)
