# export models — google sheets export input, results and error categories

from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, Field, model_validator

from moodlogger.models.entry import check_date

CellValue = Union[str, float, int, None]


class ExportErrorCategory(str, Enum):
    """machine-readable failure kinds; each one needs a different fix from the user"""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    AUTHENTICATION = "authentication"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    HEADER_MISMATCH = "header_mismatch"
    TRANSIENT = "transient"


class SheetExportInput(BaseModel):
    """header row plus data rows; the first cell of every row is the date"""
    headers: list[str] = Field(..., min_length=1)
    data: list[list[CellValue]] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_row_shape(self):
        width = len(self.headers)
        for i, row in enumerate(self.data):
            if len(row) != width:
                raise ValueError(f"row {i}: expected {width} columns, got {len(row)}")
            if not isinstance(row[0], str) or not row[0].strip():
                raise ValueError(f"row {i}: first column must be a date string")
            check_date(row[0])
        return self


class ExportResult(BaseModel):
    """outcome of an export; counts are kept on partial failure"""
    success: bool
    rows_appended: int = Field(0, alias="rowsAppended")
    rows_updated: int = Field(0, alias="rowsUpdated")
    rows_unchanged: int = Field(0, alias="rowsUnchanged")
    message: Optional[str] = None
    error: Optional[str] = None
    error_category: Optional[ExportErrorCategory] = Field(None, alias="errorCategory")

    model_config = {"populate_by_name": True}


class SheetReadResult(BaseModel):
    """diagnostic read of a sheet range"""
    success: bool
    range: str
    data: Optional[list[list[CellValue]]] = None
    error: Optional[str] = None
    error_category: Optional[ExportErrorCategory] = Field(None, alias="errorCategory")

    model_config = {"populate_by_name": True}
