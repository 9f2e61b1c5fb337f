import pytest

from manpower.data import UploadError, build_dataset
from manpower.filters import FilterSelection
from manpower.state import (
    DashboardState,
    DatasetLoaded,
    EmptySelectionError,
    FilterChanged,
    FiltersCleared,
    FiltersReplaced,
    derive_view,
)


def test_view_without_dataset_is_all_zero():
    state = DashboardState()
    view = state.view
    assert state.dataset is None
    assert view.schema is None
    assert view.metrics.to_dict() == {"totalEmployees": 0, "executives": 0, "departments": 0, "avgAge": 0.0}
    assert view.filter_options == {"executiveType": [], "ageGroup": [], "gender": [], "department": []}
    assert view.department_series == []


def test_every_event_recomputes_the_view(cohort_dataset):
    state = DashboardState()
    view = state.apply(DatasetLoaded(cohort_dataset))
    assert view.metrics.total_employees == 30
    assert view.filter_options == cohort_dataset.filter_options

    view = state.apply(FilterChanged("executiveType", ["Executive"]))
    assert view.metrics.total_employees == 10
    assert view.filtered_records == 1
    assert view.total_records == 2

    # A second dimension leaves the first in place.
    view = state.apply(FilterChanged("gender", ["Female"]))
    assert state.selection.executive_type == ("Executive",)
    assert view.gender_series == [{"label": "Male", "value": 8}, {"label": "Female", "value": 2}]

    view = state.apply(FiltersCleared())
    assert state.selection.is_empty()
    assert view.metrics.total_employees == 30
    assert state.view is view


def test_filters_replaced_swaps_whole_selection(cohort_dataset):
    state = DashboardState(cohort_dataset, FilterSelection(department=("BSP",)))
    view = state.apply(FiltersReplaced(FilterSelection(department=("DSP",))))
    assert [p["label"] for p in view.department_series] == ["DSP"]


def test_new_dataset_keeps_selection_but_stale_values_match_nothing(cohort_dataset):
    state = DashboardState(cohort_dataset)
    state.apply(FilterChanged("department", ["BSP"]))
    replacement = build_dataset([{"Plant": "RSP", "Manpower": 9, "Male": 9}], "cohort", source_name="new.xlsx")
    view = state.apply(DatasetLoaded(replacement))

    assert state.dataset is replacement
    assert state.selection.department == ("BSP",)
    assert view.filter_options["department"] == ["RSP"]
    assert view.filtered_records == 0
    assert view.metrics.total_employees == 0
    assert view.source_name == "new.xlsx"


def test_rejected_upload_leaves_state_untouched(cohort_dataset):
    state = DashboardState(cohort_dataset)
    before = state.view
    with pytest.raises(UploadError):
        state.load_upload(b"not a workbook", "broken.xlsx", "cohort")
    with pytest.raises(UploadError):
        state.load_upload(b"a,b\n1,2\n", "people.csv", "person")
    assert state.dataset is cohort_dataset
    assert state.view is before


def test_load_upload_replaces_dataset(make_workbook, person_rows, cohort_dataset):
    state = DashboardState(cohort_dataset)
    view = state.load_upload(make_workbook(person_rows), "people.xlsx", "person")
    assert view.schema.value == "person"
    assert view.metrics.total_employees == 4
    assert view.filter_options["department"] == ["IT", "HR", "Finance"]


def test_report_needs_a_filter(cohort_dataset):
    state = DashboardState(cohort_dataset)
    with pytest.raises(EmptySelectionError):
        state.generate_report()
    state.apply(FilterChanged("ageGroup", ["40-45"]))
    report = state.generate_report()
    assert report["filters"]["ageGroup"] == ["40-45"]
    assert report["metrics"]["totalEmployees"] == 10


def test_unknown_dimension_is_rejected(cohort_dataset):
    state = DashboardState(cohort_dataset)
    with pytest.raises(ValueError):
        state.apply(FilterChanged("plant", ["BSP"]))
    assert state.selection.is_empty()


def test_derive_view_is_pure(cohort_dataset):
    selection = FilterSelection(executive_type=("Executive",))
    assert derive_view(cohort_dataset, selection) == derive_view(cohort_dataset, selection)


def test_payload_can_carry_chart_specs(cohort_dataset):
    payload = DashboardState(cohort_dataset).view.to_payload(include_charts=True)
    assert set(payload["charts"]) == {"department", "gender"}
    assert "$schema" in payload["charts"]["department"]
    assert payload["series"]["department"][0] == {"label": "BSP", "value": 10}
    assert payload["rowCounts"] == {"total": 2, "filtered": 2}


def test_failed_recompute_leaves_state_untouched(cohort_dataset):
    from decimal import InvalidOperation

    from manpower.data import Dataset
    from manpower.records import CohortRecord, Schema

    state = DashboardState(cohort_dataset)
    before = state.view
    # Built directly, bypassing the normalizer, so the rounding step cannot cope.
    broken = Dataset(schema=Schema.COHORT, records=(CohortRecord(plant_unit="BSP", manpower_count=5, average_age=float("inf")),))
    with pytest.raises(InvalidOperation):
        state.apply(DatasetLoaded(broken))
    assert state.dataset is cohort_dataset
    assert state.selection.is_empty()
    assert state.view is before

    view = state.apply(FilterChanged("department", ["BSP"]))
    assert view.metrics.total_employees == 10
