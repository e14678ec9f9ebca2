from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import Literal, Optional
from urllib.parse import quote

import numpy as np
from fastapi import Depends, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import RowUpdateModel, TableMetaModel
from cascade.config import configure_logging, get_settings
from cascade.dashboard import compute_dashboard
from cascade.errors import ExportError, UnknownTableError
from cascade.export import FORMATS, export_rows
from cascade.filters import normalize_view_filters
from cascade.rows import normalize_row
from cascade.schema import NO_MATCHES_MESSAGE, TABLES, TableConfig, get_table
from cascade.storage import JsonDirBackend, StorageBackend
from cascade.store import RowStore
from cascade.view import ViewResult, derive_view, total_pages

configure_logging()
app = FastAPI(title="KPI Cascade API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_backend() -> StorageBackend:
    return JsonDirBackend(get_settings().data_dir)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy values and NaN/inf floats."""

    def _safe_float(value: float) -> Optional[float]:
        if math.isnan(value) or math.isinf(value):
            return None
        return value

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                np.integer: int,
                float: _safe_float,
                np.floating: lambda v: _safe_float(float(v)),
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _open(table: str, backend: StorageBackend) -> RowStore:
    return RowStore.open(get_table(table), backend)


def _view_payload(result: ViewResult, config: TableConfig) -> dict:
    empty_message = None
    if result.empty_state == "empty":
        empty_message = config.empty_message
    elif result.empty_state == "no_matches":
        empty_message = NO_MATCHES_MESSAGE
    return {
        "table": config.name,
        "page": result.page,
        "page_size": result.page_size,
        "total_pages": result.total_pages,
        "page_start": result.page_start,
        "total_count": result.total_count,
        "filtered_count": result.filtered_count,
        "empty_state": result.empty_state,
        "empty_message": empty_message,
        "rows": [r.to_dict() for r in result.page_rows],
    }


def _view(
    store: RowStore,
    last_name: str,
    goal: str,
    sort_key: Optional[str],
    sort_direction: str,
    page: int,
) -> ViewResult:
    filters = normalize_view_filters(
        {
            "last_name": last_name,
            "goal": goal,
            "sort_key": sort_key,
            "sort_direction": sort_direction,
            "page": page,
        },
        store.config,
    )
    return derive_view(store.rows, filters, store.config.page_size)


@app.get("/meta/tables")
def meta_tables():
    tables = [
        TableMetaModel(
            name=t.name,
            title=t.title,
            page_size=t.page_size,
            export_prefix=t.export_prefix,
            columns=[asdict(c) for c in t.columns],
        ).model_dump()
        for t in TABLES.values()
    ]
    return _json({"tables": tables, "formats": list(FORMATS)})


@app.get("/tables/{table}/rows")
def list_rows(
    table: str,
    last_name: str = Query(default=""),
    goal: str = Query(default=""),
    sort_key: Optional[str] = Query(default=None),
    sort_direction: Literal["asc", "desc"] = Query(default="asc"),
    page: int = Query(default=1),
    backend: StorageBackend = Depends(get_backend),
):
    try:
        store = _open(table, backend)
        result = _view(store, last_name, goal, sort_key, sort_direction, page)
        return _json(_view_payload(result, store.config))
    except UnknownTableError as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("list_rows failed")
        return _error(exc)


@app.post("/tables/{table}/rows")
def create_row(table: str, backend: StorageBackend = Depends(get_backend)):
    try:
        store = _open(table, backend)
        row = store.add_row()
        page = total_pages(len(store.rows), store.config.page_size)
        return _json({"row": row.to_dict(), "page": page}, status_code=201)
    except UnknownTableError as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("create_row failed")
        return _error(exc)


@app.put("/tables/{table}/rows/{row_id}")
def update_row(table: str, row_id: str, changes: RowUpdateModel, backend: StorageBackend = Depends(get_backend)):
    try:
        store = _open(table, backend)
        current = store.get_row(row_id)
        if current is None:
            return _error(KeyError(f"Row not found: {row_id}"), 404)
        merged = {**current.to_dict(), **changes.model_dump(by_alias=True, exclude_none=True), "id": row_id}
        row = normalize_row(merged)
        store.replace_row(row)
        return _json({"row": row.to_dict()})
    except UnknownTableError as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("update_row failed")
        return _error(exc)


@app.delete("/tables/{table}/rows/{row_id}")
def delete_row(table: str, row_id: str, backend: StorageBackend = Depends(get_backend)):
    try:
        store = _open(table, backend)
        if not store.delete_row(row_id):
            return _error(KeyError(f"Row not found: {row_id}"), 404)
        return _json({"deleted": row_id, "total_count": len(store.rows)})
    except UnknownTableError as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("delete_row failed")
        return _error(exc)


@app.get("/dashboards/{table}")
def dashboard(table: str, backend: StorageBackend = Depends(get_backend)):
    try:
        store = _open(table, backend)
        return _json(compute_dashboard(store.rows, store.config))
    except UnknownTableError as exc:
        return _error(exc, 404)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


def _content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode() or "export"
    if ascii_name.startswith("."):
        ascii_name = "export" + ascii_name
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@app.get("/tables/{table}/export/{fmt}")
def export_table(
    table: str,
    fmt: str,
    last_name: str = Query(default=""),
    goal: str = Query(default=""),
    sort_key: Optional[str] = Query(default=None),
    sort_direction: Literal["asc", "desc"] = Query(default="asc"),
    backend: StorageBackend = Depends(get_backend),
):
    try:
        store = _open(table, backend)
        if fmt.lower() not in FORMATS:
            return _error(ValueError(f"Unsupported export format: {fmt}"), 400)
        result = _view(store, last_name, goal, sort_key, sort_direction, 1)
        exported = export_rows(result.rows, fmt, store.config.export_prefix)
        return Response(
            content=exported.data,
            media_type=exported.mime,
            headers={"Content-Disposition": _content_disposition(exported.filename)},
        )
    except UnknownTableError as exc:
        return _error(exc, 404)
    except ExportError as exc:
        return _error(exc)
    except Exception as exc:
        logger.exception("export_table failed")
        return _error(exc)
