"""Dashboard state: the current dataset, the filter selection and the derived view.

Every mutation goes through :meth:`DashboardState.apply`, which recomputes the
view eagerly. The view is a pure function of ``(dataset, selection)`` via
:func:`derive_view`; nothing is cached between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from manpower.charts import build_charts
from manpower.data import Dataset, load_upload
from manpower.filters import DIMENSIONS, FilterSelection, apply_filters
from manpower.metrics_overview import Metrics, compute_overview
from manpower.records import Schema


logger = logging.getLogger(__name__)


class EmptySelectionError(ValueError):
    """A report was requested without any active filter."""


@dataclass(frozen=True)
class DatasetLoaded:
    dataset: Dataset


@dataclass(frozen=True)
class FilterChanged:
    dimension: str
    values: Iterable[str] = ()


@dataclass(frozen=True)
class FiltersReplaced:
    selection: FilterSelection


@dataclass(frozen=True)
class FiltersCleared:
    pass


Event = Union[DatasetLoaded, FilterChanged, FiltersReplaced, FiltersCleared]


@dataclass(frozen=True)
class DashboardView:
    schema: Optional[Schema] = None
    metrics: Metrics = field(default_factory=Metrics)
    department_series: List[Dict[str, Any]] = field(default_factory=list)
    gender_series: List[Dict[str, Any]] = field(default_factory=list)
    filter_options: Dict[str, List[str]] = field(default_factory=lambda: {dim: [] for dim in DIMENSIONS})
    years: List[str] = field(default_factory=list)
    selection: FilterSelection = field(default_factory=FilterSelection)
    total_records: int = 0
    filtered_records: int = 0
    source_name: Optional[str] = None

    def to_payload(self, *, include_charts: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "schema": self.schema.value if self.schema else None,
            "source": self.source_name,
            "metrics": self.metrics.to_dict(),
            "series": {"department": self.department_series, "gender": self.gender_series},
            "filterOptions": self.filter_options,
            "years": self.years,
            "filters": self.selection.to_dict(),
            "rowCounts": {"total": self.total_records, "filtered": self.filtered_records},
        }
        if include_charts:
            payload["charts"] = build_charts(self.department_series, self.gender_series)
        return payload


def derive_view(dataset: Optional[Dataset], selection: FilterSelection) -> DashboardView:
    if dataset is None:
        return DashboardView(selection=selection)
    filtered = apply_filters(dataset.records, dataset.schema, selection)
    overview = compute_overview(filtered, dataset.schema)
    return DashboardView(
        schema=dataset.schema,
        metrics=overview.metrics,
        department_series=overview.department_series,
        gender_series=overview.gender_series,
        filter_options=dataset.filter_options,
        years=dataset.years,
        selection=selection,
        total_records=len(dataset.records),
        filtered_records=len(filtered),
        source_name=dataset.source_name,
    )


class DashboardState:
    """Single-session owner of dataset and filter state."""

    def __init__(self, dataset: Optional[Dataset] = None, selection: Optional[FilterSelection] = None):
        self._dataset = dataset
        self._selection = selection or FilterSelection()
        self._view = derive_view(self._dataset, self._selection)

    @property
    def dataset(self) -> Optional[Dataset]:
        return self._dataset

    @property
    def selection(self) -> FilterSelection:
        return self._selection

    @property
    def view(self) -> DashboardView:
        return self._view

    def apply(self, event: Event) -> DashboardView:
        dataset, selection = self._dataset, self._selection
        if isinstance(event, DatasetLoaded):
            # Replaces the prior dataset outright; selections are kept and simply
            # stop matching if their option strings no longer exist.
            dataset = event.dataset
        elif isinstance(event, FilterChanged):
            selection = selection.with_dimension(event.dimension, event.values)
        elif isinstance(event, FiltersReplaced):
            selection = event.selection
        elif isinstance(event, FiltersCleared):
            selection = FilterSelection()
        else:
            raise TypeError(f"Unsupported dashboard event: {type(event).__name__}")
        # State only changes once the new view has been computed.
        view = derive_view(dataset, selection)
        self._dataset, self._selection, self._view = dataset, selection, view
        return view

    def load_upload(self, content: bytes, filename: str, schema: Union[Schema, str]) -> DashboardView:
        # Parsing happens before any mutation so a rejected upload leaves state untouched.
        dataset = load_upload(content, filename, schema)
        return self.apply(DatasetLoaded(dataset))

    def generate_report(self) -> Dict[str, Any]:
        if self._selection.is_empty():
            raise EmptySelectionError("Please select at least one filter before generating the report.")
        logger.info("Generating report with filters %s", self._selection.to_dict())
        return self._view.to_payload()
