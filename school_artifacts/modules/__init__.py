# School Artifacts Service - Modules Package
"""
Core modules for the School Artifacts Service.
Contains the QR composition engine, the export engine and their helpers.
"""

__version__ = "1.0.0"
__description__ = "Core modules for QR code and report artifact generation"

# Module descriptions
MODULES = {
    'qr_generator': 'Branded QR code generation (PNG, SVG, base64)',
    'logo_sources': 'Logo source classification and fetching',
    'qr_tracking': 'Short codes, scan URLs and UTM tracking URLs',
    'report_generator': 'Report export to CSV, JSON, Excel and print-ready HTML',
    'export_types': 'Export requests, column schemas and format tags',
    'value_formatter': 'Per-column cell formatting (pt-BR)',
    'spreadsheet_writers': 'XLSX writer and CSV fallback',
    'report_templates': 'Predefined report column layouts',
    'fiscal_formatters': 'Brazilian fiscal formatting and document validation'
}

def get_module_info():
    """Get information about available modules"""
    return MODULES
