from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, File, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FilterSelectionModel, FilterValuesModel
from manpower.charts import series_frame
from manpower.data import UploadError
from manpower.filters import normalize_filters
from manpower.records import parse_schema
from manpower.state import (
    DashboardState,
    EmptySelectionError,
    FilterChanged,
    FiltersCleared,
    FiltersReplaced,
)


app = FastAPI(title="Manpower Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_STATE = DashboardState()


def get_state() -> DashboardState:
    return _STATE


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/view")
def view(charts: bool = Query(default=False), state: DashboardState = Depends(get_state)):
    try:
        return _json(state.view.to_payload(include_charts=charts))
    except Exception as exc:
        logger.exception("view failed")
        return _error(exc, 500)


@app.get("/meta/options")
def meta_options(state: DashboardState = Depends(get_state)):
    try:
        current = state.view
        return _json({"filterOptions": current.filter_options, "years": current.years})
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc, 500)


@app.post("/upload/{schema}")
async def upload(schema: str, file: UploadFile = File(...), state: DashboardState = Depends(get_state)):
    try:
        target = parse_schema(schema)
        content = await file.read()
        result = state.load_upload(content, file.filename or "", target)
        return _json(result.to_payload())
    except (UploadError, ValueError) as exc:
        logger.warning("upload of %s rejected: %s", file.filename, exc)
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("upload failed")
        return _error(exc, 500)


@app.put("/filters/{dimension}")
def set_filter(dimension: str, body: FilterValuesModel, state: DashboardState = Depends(get_state)):
    try:
        return _json(state.apply(FilterChanged(dimension, tuple(body.values))).to_payload())
    except ValueError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("set_filter failed")
        return _error(exc, 500)


@app.post("/filters")
def replace_filters(filters: FilterSelectionModel, state: DashboardState = Depends(get_state)):
    try:
        selection = normalize_filters(filters.model_dump())
        return _json(state.apply(FiltersReplaced(selection)).to_payload())
    except Exception as exc:
        logger.exception("replace_filters failed")
        return _error(exc, 500)


@app.delete("/filters")
def clear_filters(state: DashboardState = Depends(get_state)):
    try:
        return _json(state.apply(FiltersCleared()).to_payload())
    except Exception as exc:
        logger.exception("clear_filters failed")
        return _error(exc, 500)


@app.post("/report")
def report(state: DashboardState = Depends(get_state)):
    try:
        return _json(state.generate_report())
    except EmptySelectionError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("report failed")
        return _error(exc, 500)


@app.get("/export/{series}")
def export_series(series: str, state: DashboardState = Depends(get_state)):
    current = state.view
    if series == "department":
        export_df = series_frame(current.department_series)
    elif series == "gender":
        export_df = series_frame(current.gender_series)
    else:
        return _error(ValueError(f"Unknown series {series!r}"), 404)
    filename = f"{series}.csv"
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
