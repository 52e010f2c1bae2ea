# export router — push the score table to google sheets
# the response body is always an ExportResult; the status code reflects the failure category

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from moodlogger.config import settings
from moodlogger.dependencies import get_entry_store
from moodlogger.models.export import ExportErrorCategory, ExportResult, SheetReadResult
from moodlogger.services.entry_store import EntryStore
from moodlogger.services.sheets_export import SheetExporter, SheetsConfig, build_sheet_rows

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/export", tags=["export"])

CATEGORY_STATUS = {
    ExportErrorCategory.VALIDATION: 400,
    ExportErrorCategory.AUTHENTICATION: 401,
    ExportErrorCategory.PERMISSION_DENIED: 403,
    ExportErrorCategory.NOT_FOUND: 404,
    ExportErrorCategory.HEADER_MISMATCH: 409,
    ExportErrorCategory.CONFIGURATION: 500,
    ExportErrorCategory.TRANSIENT: 502,
}


def get_sheet_exporter() -> SheetExporter:
    """exporter built from the process configuration"""
    return SheetExporter(SheetsConfig.from_settings(settings))


def _respond(result, category: Optional[ExportErrorCategory]) -> JSONResponse:
    status_code = 200 if category is None else CATEGORY_STATUS.get(category, 500)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json", by_alias=True))


@router.post("/sheets", response_model=ExportResult)
async def export_to_sheets(
    store: EntryStore = Depends(get_entry_store),
    exporter: SheetExporter = Depends(get_sheet_exporter),
):
    """upsert one row per entry (keyed by date) into the configured sheet"""
    entries = await store.get_all_entries()
    headers, rows = build_sheet_rows(entries)

    # gspread is blocking
    result = await asyncio.to_thread(exporter.export, headers, rows)
    return _respond(result, result.error_category)


@router.get("/sheets/diagnostics", response_model=SheetReadResult)
async def sheet_diagnostics(
    range_name: Optional[str] = Query(None, alias="range", description="a1 range within the tab, e.g. A1:B2"),
    exporter: SheetExporter = Depends(get_sheet_exporter),
):
    """test read of the configured sheet to check credentials and access"""
    result = await asyncio.to_thread(exporter.test_read, range_name)
    return _respond(result, result.error_category)
