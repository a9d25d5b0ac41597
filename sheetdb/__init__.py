"""sheetdb: a Google Sheets spreadsheet used as a typed, row-oriented table store."""

from .database import Database, read_sheet
from .domain.codecs import ColumnCodec, CodecRegistry, register_type
from .domain.exceptions import SchemaError
from .domain.serial_date import SerialDate, to_date, to_serial
from .errors import AppError
from .infra.http.sheets_client import ApiError, SheetsApiClient
from .table import Table

__all__ = [
    "Database",
    "Table",
    "read_sheet",
    "register_type",
    "ColumnCodec",
    "CodecRegistry",
    "SerialDate",
    "to_date",
    "to_serial",
    "AppError",
    "SchemaError",
    "ApiError",
    "SheetsApiClient",
]
