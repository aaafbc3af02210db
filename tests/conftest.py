import base64
import io

import pytest
from PIL import Image

from app import create_app
from school_artifacts.modules.export_types import ExportColumn, ExportRequest
from school_artifacts.modules.qr_generator import QRGenerator
from school_artifacts.modules.report_generator import ReportGenerator


@pytest.fixture
def app():
    return create_app('testing')


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def generator():
    return QRGenerator(max_workers=4)


@pytest.fixture
def reports():
    return ReportGenerator()


@pytest.fixture
def logo_png():
    # Solid square with a contrasting inner block
    logo = Image.new('RGBA', (120, 120), (220, 38, 38, 255))
    logo.paste((255, 255, 255, 255), (40, 40, 80, 80))
    buffer = io.BytesIO()
    logo.save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def logo_file(tmp_path, logo_png):
    path = tmp_path / 'logo.png'
    path.write_bytes(logo_png)
    return path


@pytest.fixture
def logo_data_uri(logo_png):
    return 'data:image/png;base64,' + base64.b64encode(logo_png).decode('ascii')


@pytest.fixture
def invoice_rows():
    return [
        {
            'invoiceNumber': 'FAT-0001',
            'studentName': 'Ana Souza',
            'dueDate': '2026-01-15',
            'amount': 149700,
            'paidAt': None,
            'status': 'pendente',
            'paymentMethod': 'boleto',
        },
        {
            'invoiceNumber': 'FAT-0002',
            'studentName': 'Bruno "Bia" Lima, Jr.',
            'dueDate': '2026-02-15',
            'amount': 98050,
            'paidAt': '2026-02-10',
            'status': 'pago',
            'paymentMethod': 'pix',
        },
    ]


@pytest.fixture
def simple_request():
    def build(data, fmt='csv', **kwargs):
        columns = kwargs.pop('columns', None) or [
            ExportColumn('name', 'Nome'),
            ExportColumn('amount', 'Valor', format='currency', align='right'),
        ]
        return ExportRequest(filename='relatorio', columns=columns, data=data, format=fmt, **kwargs)
    return build
