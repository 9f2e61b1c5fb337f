"""Core (UI-agnostic) manpower dashboard logic.

This package contains:
- row normalization and workbook reading (XLSX -> canonical records)
- the multi-dimension filter engine
- metric and chart-series aggregation
- the dashboard state controller
- chart helpers (Altair -> Vega-Lite spec dict)
"""
