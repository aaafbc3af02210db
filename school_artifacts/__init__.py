# School Artifacts Service - App Package
"""
Main application package for the School Artifacts Service.
This package contains the QR code and report export engines.
"""

__version__ = "1.0.0"
__author__ = "School Artifacts Team"
__description__ = "Branded QR code generation and tabular report export for school management platforms"

# Import core components for easy access
from .modules.export_types import ColumnAlign, ColumnFormat, DateRange, ExportColumn, ExportFormat, ExportRequest
from .modules.qr_generator import QRGenerateOptions, QRGenerator
from .modules.report_generator import ReportGenerator
from .modules.value_formatter import format_value

__all__ = [
    'QRGenerator',
    'QRGenerateOptions',
    'ReportGenerator',
    'ExportRequest',
    'ExportColumn',
    'ExportFormat',
    'ColumnFormat',
    'ColumnAlign',
    'DateRange',
    'format_value'
]
