"""
Report Generator Module - School Artifacts Service

This module turns column-typed tabular data into downloadable artifacts.
Rows arrive already fetched by the caller; every export is a single-shot,
stateless transformation that returns a result dictionary instead of raising.

Features:
- CSV export with UTF-8 BOM and RFC 4180 quoting
- JSON export with metadata envelope and raw values
- Excel (XLSX) export with native numeric cells and CSV fallback
- Print-ready HTML export standing in for PDF
- Predefined report templates
- Download responses for the HTTP layer
"""

import csv
import io
import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from flask import send_file
from jinja2 import Template

from config import ExportConfig
from .export_types import ColumnAlign, ExportFormat, ExportRequest
from .report_templates import REPORT_TEMPLATES, get_report_template
from .spreadsheet_writers import SpreadsheetWriter, resolve_spreadsheet_writer
from .value_formatter import format_date, format_datetime, format_value, to_number

CSV_MIME_TYPE = 'text/csv;charset=utf-8'
JSON_MIME_TYPE = 'application/json;charset=utf-8'
HTML_MIME_TYPE = 'text/html;charset=utf-8'

UTF8_BOM = '\ufeff'

# One handler per export format
_FORMAT_HANDLERS = {
    ExportFormat.CSV: 'export_to_csv',
    ExportFormat.JSON: 'export_to_json',
    ExportFormat.XLSX: 'export_to_excel',
    ExportFormat.PDF: 'export_to_pdf',
}

_unhandled = set(ExportFormat) - set(_FORMAT_HANDLERS)
if _unhandled:
    raise RuntimeError(f"Export formats without handler: {sorted(f.value for f in _unhandled)}")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ReportGenerator:
    """
    Export engine for tabular report data.
    Supports CSV, JSON, XLSX and print-ready HTML output driven by a
    per-column format schema.
    """

    def __init__(self, spreadsheet_writer: Optional[SpreadsheetWriter] = None):
        """
        Initialize the report generator.

        Args:
            spreadsheet_writer (Optional[SpreadsheetWriter]): Workbook writer;
                resolved from the installed libraries when omitted
        """
        self.logger = logging.getLogger(__name__)

        self.supported_formats = [fmt.value for fmt in ExportFormat]
        self.max_records_per_report = ExportConfig.MAX_RECORDS
        self.spreadsheet_writer = spreadsheet_writer or resolve_spreadsheet_writer(self.export_to_csv)

        self.pdf_template = Template(PDF_HTML_TEMPLATE, autoescape=True)

    def export_data(self, request: ExportRequest) -> Dict[str, Any]:
        """
        Export data in the format named by the request.

        Args:
            request (ExportRequest): Export request

        Returns:
            Dict[str, Any]: Export result
        """
        try:
            export_format = ExportFormat(request.format)
        except ValueError:
            self.logger.warning(f"Unsupported export format requested: {request.format}")
            return {
                'success': False,
                'error': f'Unsupported format: {getattr(request.format, "value", request.format)}',
                'error_type': 'unsupported_format'
            }

        if len(request.data) > self.max_records_per_report:
            return {
                'success': False,
                'error': f'Too many records: {len(request.data)} (limit {self.max_records_per_report})',
                'error_type': 'export_failed'
            }

        handler = getattr(self, _FORMAT_HANDLERS[export_format])
        result = handler(request)

        if result['success']:
            self.logger.info(f"Export generated successfully: {result['filename']} ({result['size']} bytes)")

        return result

    def export_to_csv(self, request: ExportRequest) -> Dict[str, Any]:
        """
        Generate a CSV export.

        Every cell is rendered through format_value and wrapped in double
        quotes with inner quotes doubled. A UTF-8 byte-order mark is
        prepended so spreadsheet tools detect the encoding.

        Args:
            request (ExportRequest): Export request

        Returns:
            Dict[str, Any]: CSV generation result
        """
        try:
            df = pd.DataFrame(
                [[format_value(row.get(col.key), col.format) for col in request.columns]
                 for row in request.data],
                columns=[col.label for col in request.columns]
            )
            text = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator='\n')

            # No newline after the last record
            if text.endswith('\n'):
                text = text[:-1]

            content = (UTF8_BOM + text).encode('utf-8')

            return self._result(request, content, 'csv', CSV_MIME_TYPE)

        except Exception as e:
            self.logger.error(f"CSV export failed: {str(e)}")
            return {
                'success': False,
                'error': str(e) or 'Failed to export CSV',
                'error_type': 'export_failed'
            }

    def export_to_json(self, request: ExportRequest) -> Dict[str, Any]:
        """
        Generate a JSON export.

        Values are kept raw for machine consumption, unlike the CSV and HTML
        paths which format every cell.

        Args:
            request (ExportRequest): Export request

        Returns:
            Dict[str, Any]: JSON generation result
        """
        try:
            metadata = {
                'title': request.title,
                'organization': request.organization_name,
                'generatedAt': _iso(_now()),
                'dateRange': {
                    'start': _iso(request.date_range.start),
                    'end': _iso(request.date_range.end),
                } if request.date_range else None,
                'columns': [
                    {k: v for k, v in col.to_dict().items() if v is not None}
                    for col in request.columns
                ],
            }

            export_document = {
                'metadata': {k: v for k, v in metadata.items() if v is not None},
                'data': [dict(row) for row in request.data],
                'summary': {
                    'totalRecords': len(request.data),
                },
            }

            content = json.dumps(
                export_document, indent=2, ensure_ascii=False, default=_json_default
            ).encode('utf-8')

            return self._result(request, content, 'json', JSON_MIME_TYPE)

        except Exception as e:
            self.logger.error(f"JSON export failed: {str(e)}")
            return {
                'success': False,
                'error': str(e) or 'Failed to export JSON',
                'error_type': 'export_failed'
            }

    def export_to_excel(self, request: ExportRequest) -> Dict[str, Any]:
        """
        Generate an Excel workbook.

        Delegates to the configured spreadsheet writer. When the workbook
        library is missing the writer is the CSV fallback and the returned
        filename ends in .csv.

        Args:
            request (ExportRequest): Export request

        Returns:
            Dict[str, Any]: Excel (or CSV fallback) generation result
        """
        try:
            return self.spreadsheet_writer.write(request)

        except Exception as e:
            self.logger.error(f"Excel export failed: {str(e)}")
            return {
                'success': False,
                'error': str(e) or 'Failed to export Excel',
                'error_type': 'export_failed'
            }

    def export_to_pdf(self, request: ExportRequest) -> Dict[str, Any]:
        """
        Generate the print-ready HTML document used for PDF output.

        Rasterizing to an actual PDF file is left to an external renderer
        (browser print dialog or a headless browser).

        Args:
            request (ExportRequest): Export request

        Returns:
            Dict[str, Any]: HTML generation result
        """
        try:
            content = self.render_pdf_html(request).encode('utf-8')
            return self._result(request, content, 'html', HTML_MIME_TYPE, format_name='pdf')

        except Exception as e:
            self.logger.error(f"PDF export failed: {str(e)}")
            return {
                'success': False,
                'error': str(e) or 'Failed to export PDF',
                'error_type': 'export_failed'
            }

    def render_pdf_html(self, request: ExportRequest) -> str:
        """Render the styled HTML report for a request."""
        period = ''
        if request.date_range:
            period = (f"Período: {format_date(request.date_range.start)} "
                      f"a {format_date(request.date_range.end)}")

        headers = [
            {'label': col.label, 'css_class': _align_class(col.align)}
            for col in request.columns
        ]
        rows = [
            [
                {'text': format_value(row.get(col.key), col.format), 'css_class': _align_class(col.align)}
                for col in request.columns
            ]
            for row in request.data
        ]

        return self.pdf_template.render(
            title=request.title,
            default_title=ExportConfig.DEFAULT_TITLE,
            subtitle=request.subtitle,
            organization_name=request.organization_name,
            period=period,
            generated_at=format_datetime(_now()),
            generated_by=request.generated_by,
            total_records=len(request.data),
            headers=headers,
            rows=rows,
            footer_text=request.footer_text or ExportConfig.DEFAULT_FOOTER,
            disclaimer=ExportConfig.DISCLAIMER,
        ).strip()

    def export_report(self, template_name: str, data: List[Mapping[str, Any]],
                      export_format: str = 'csv', filename: str = None,
                      **metadata) -> Dict[str, Any]:
        """
        Export rows using a predefined report template.

        Args:
            template_name (str): Report template identifier
            data (List[Mapping[str, Any]]): Rows to export
            export_format (str): Output format (csv, json, xlsx, pdf)
            filename (str): Filename stem, defaults to template name and timestamp
            **metadata: subtitle, organization_name, generated_by, footer_text, date_range, title

        Returns:
            Dict[str, Any]: Export result
        """
        try:
            template = get_report_template(template_name)
        except KeyError as e:
            return {
                'success': False,
                'error': e.args[0],
                'error_type': 'unknown_template'
            }

        request = ExportRequest(
            filename=filename or f"{template_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}",
            columns=list(template['columns']),
            data=list(data),
            format=export_format,
            title=metadata.pop('title', None) or template['title'],
            **metadata
        )
        return self.export_data(request)

    def get_available_reports(self) -> List[Dict[str, Any]]:
        """
        Get list of available report templates.

        Returns:
            List[Dict[str, Any]]: Template identifiers, titles and column schemas
        """
        return [
            {
                'type': name,
                'name': template['title'],
                'columns': [col.to_dict() for col in template['columns']]
            }
            for name, template in REPORT_TEMPLATES.items()
        ]

    def build_download_response(self, result: Dict[str, Any]):
        """
        Turn a successful export result into an attachment response.

        Args:
            result (Dict[str, Any]): Result of one of the export operations

        Returns:
            flask.Response: File download response
        """
        if not result.get('success'):
            raise ValueError(result.get('error') or 'Cannot download a failed export')

        return send_file(
            io.BytesIO(result['blob']),
            mimetype=result['mime_type'],
            as_attachment=True,
            download_name=result['filename']
        )

    @staticmethod
    def _result(request: ExportRequest, content: bytes, extension: str,
                mime_type: str, format_name: str = None) -> Dict[str, Any]:
        return {
            'success': True,
            'filename': f"{request.filename}.{extension}",
            'blob': content,
            'mime_type': mime_type,
            'format': format_name or extension,
            'size': len(content)
        }


def _align_class(align: Optional[ColumnAlign]) -> str:
    if align is ColumnAlign.RIGHT:
        return 'text-right'
    if align is ColumnAlign.CENTER:
        return 'text-center'
    return ''


def _iso(value) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
            return value.isoformat(timespec='milliseconds').replace('+00:00', 'Z')
        return value.isoformat(timespec='milliseconds')
    return value.isoformat()


def _json_default(value):
    if isinstance(value, (datetime, date)):
        return _iso(value)
    if isinstance(value, Decimal):
        return to_number(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


PDF_HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="UTF-8">
    <title>{{ title or 'Export' }}</title>
    <style>
        * { box-sizing: border-box; }
        body {
            font-family: 'Segoe UI', Arial, sans-serif;
            font-size: 10pt;
            line-height: 1.4;
            color: #1f2937;
            padding: 20px;
            margin: 0;
        }
        .header {
            text-align: center;
            margin-bottom: 20px;
            border-bottom: 2px solid #3b82f6;
            padding-bottom: 15px;
        }
        .header h1 {
            margin: 0 0 5px 0;
            font-size: 18pt;
            color: #1e3a8a;
        }
        .header h2 {
            margin: 0;
            font-size: 12pt;
            font-weight: normal;
            color: #6b7280;
        }
        .meta {
            display: flex;
            justify-content: space-between;
            font-size: 9pt;
            color: #6b7280;
            margin-bottom: 15px;
        }
        table {
            width: 100%;
            border-collapse: collapse;
            margin-bottom: 20px;
        }
        th {
            background: #1e3a8a;
            color: white;
            font-weight: 600;
            text-align: left;
            padding: 8px 10px;
            font-size: 9pt;
        }
        td {
            padding: 6px 10px;
            border-bottom: 1px solid #e5e7eb;
            font-size: 9pt;
        }
        tr:nth-child(even) td {
            background: #f9fafb;
        }
        .text-right { text-align: right; }
        .text-center { text-align: center; }
        .footer {
            margin-top: 30px;
            padding-top: 15px;
            border-top: 1px solid #e5e7eb;
            font-size: 8pt;
            color: #9ca3af;
            text-align: center;
        }
        .summary {
            background: #f3f4f6;
            padding: 10px;
            border-radius: 4px;
            font-size: 9pt;
            margin-bottom: 20px;
        }
        @media print {
            body { padding: 10px; }
            .no-print { display: none; }
        }
    </style>
</head>
<body>
    <div class="header">
        {% if organization_name %}<p style="margin: 0 0 5px 0; font-size: 10pt;">{{ organization_name }}</p>{% endif %}
        <h1>{{ title or default_title }}</h1>
        {% if subtitle %}<h2>{{ subtitle }}</h2>{% endif %}
    </div>

    <div class="meta">
        <span>{{ period }}</span>
        <span>Gerado em: {{ generated_at }}{% if generated_by %} por {{ generated_by }}{% endif %}</span>
    </div>

    <div class="summary">
        <strong>Total de registros:</strong> {{ total_records }}
    </div>

    <table>
        <thead>
            <tr>
                {% for header in headers %}<th class="{{ header.css_class }}">{{ header.label }}</th>{% endfor %}
            </tr>
        </thead>
        <tbody>
            {% for row in rows %}
            <tr>
                {% for cell in row %}<td class="{{ cell.css_class }}">{{ cell.text }}</td>{% endfor %}
            </tr>
            {% endfor %}
        </tbody>
    </table>

    <div class="footer">
        {{ footer_text }}
        <br>
        {{ disclaimer }}
    </div>
</body>
</html>
"""
