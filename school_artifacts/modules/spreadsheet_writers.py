"""
Spreadsheet Writers Module - School Artifacts Service

Workbook output is delegated to a writer strategy chosen when the export
engine starts: the openpyxl-backed writer when the library is installed,
otherwise a writer that produces the CSV export instead. The fallback is a
successful result whose filename ends in .csv, so callers must trust the
returned filename rather than the requested format.
"""

import importlib.util
import io
import logging
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from config import ExportConfig
from .export_types import ColumnFormat, ExportColumn, ExportRequest
from .value_formatter import format_value, to_number

XLSX_MIME_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

CsvExporter = Callable[[ExportRequest], Dict[str, Any]]


class SpreadsheetWriter:
    """Interface for turning an export request into a workbook result."""

    name = 'abstract'

    def write(self, request: ExportRequest) -> Dict[str, Any]:
        raise NotImplementedError


class OpenpyxlSpreadsheetWriter(SpreadsheetWriter):
    """
    Writes a single-sheet XLSX workbook through pandas' openpyxl engine.
    Numeric format tags stay numeric cells; everything else is rendered text.
    """

    name = 'openpyxl'

    def __init__(self, sheet_name: str = None, default_width: int = None):
        self.sheet_name = sheet_name or ExportConfig.SHEET_NAME
        self.default_width = default_width or ExportConfig.DEFAULT_COLUMN_WIDTH
        self.logger = logging.getLogger(__name__)

    def write(self, request: ExportRequest) -> Dict[str, Any]:
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter

        columns = request.columns
        frame = pd.DataFrame(
            [[self.cell_value(row.get(col.key), col) for col in columns] for row in request.data],
            columns=[col.label for col in columns]
        )

        # Title row and blank spacer row precede the header
        start_row = 2 if request.title else 0

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            frame.to_excel(writer, sheet_name=self.sheet_name, index=False, startrow=start_row)
            worksheet = writer.sheets[self.sheet_name]

            if request.title:
                title_cell = worksheet.cell(row=1, column=1, value=request.title)
                title_cell.font = Font(bold=True, size=14)

            for index, width in enumerate(column_widths(columns, self.default_width), start=1):
                worksheet.column_dimensions[get_column_letter(index)].width = width

        content = buffer.getvalue()
        return {
            'success': True,
            'filename': f"{request.filename}.xlsx",
            'blob': content,
            'mime_type': XLSX_MIME_TYPE,
            'format': 'xlsx',
            'size': len(content)
        }

    @staticmethod
    def cell_value(value: Any, column: ExportColumn) -> Any:
        """
        Spreadsheet-native value for one cell.

        Currency minor units become decimal amounts, number and percentage
        stay numeric (0 when the value is not numeric), other tags are
        rendered through format_value. Missing values stay empty cells.
        """
        if value is None:
            return None

        if column.format is ColumnFormat.CURRENCY:
            try:
                return to_number(value) / 100
            except ValueError:
                return 0

        if column.format in (ColumnFormat.NUMBER, ColumnFormat.PERCENTAGE):
            try:
                return to_number(value)
            except ValueError:
                return 0

        return format_value(value, column.format)


class CsvFallbackWriter(SpreadsheetWriter):
    """Produces the CSV export when no workbook library is available."""

    name = 'csv-fallback'

    def __init__(self, csv_exporter: CsvExporter):
        self.csv_exporter = csv_exporter
        self.logger = logging.getLogger(__name__)

    def write(self, request: ExportRequest) -> Dict[str, Any]:
        self.logger.warning(f"Spreadsheet library unavailable, exporting '{request.filename}' as CSV")
        return self.csv_exporter(request)


def openpyxl_available() -> bool:
    return importlib.util.find_spec('openpyxl') is not None


def resolve_spreadsheet_writer(csv_exporter: CsvExporter,
                               available: Optional[bool] = None) -> SpreadsheetWriter:
    """
    Pick the spreadsheet writer for this process.

    Args:
        csv_exporter (CsvExporter): CSV export used by the fallback writer
        available (Optional[bool]): Override the installed-library check

    Returns:
        SpreadsheetWriter: Workbook writer or CSV fallback
    """
    if available is None:
        available = openpyxl_available()

    if available:
        return OpenpyxlSpreadsheetWriter()

    logging.getLogger(__name__).warning("openpyxl is not installed, XLSX exports will fall back to CSV")
    return CsvFallbackWriter(csv_exporter)


def column_widths(columns: List[ExportColumn], default_width: int = None) -> List[int]:
    default_width = default_width or ExportConfig.DEFAULT_COLUMN_WIDTH
    return [col.width or default_width for col in columns]
