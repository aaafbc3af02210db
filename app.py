"""
School Artifacts Service - Main Application

This module serves as the main entry point for the artifact generation service.
It builds the Flask application, wires the configuration and exposes the
QR code and export engines over a small JSON API.

Features:
- Branded QR code generation (PNG, SVG, base64 data URI)
- Batch QR code generation
- Report export to CSV/JSON/Excel/PDF (print-ready HTML)
- Report template catalogue
"""

import base64
import logging

from flask import Flask, Response, jsonify, request

from config import init_config
from school_artifacts.modules.export_types import ExportRequest, report_metadata_from_dict
from school_artifacts.modules.qr_generator import QRGenerator
from school_artifacts.modules.report_generator import ReportGenerator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
)
logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """
    Application factory.

    Args:
        config_name (str): Key into config.config, defaults to APP_ENV

    Returns:
        Flask: Configured application
    """
    app = Flask(__name__)
    init_config(app, config_name)
    logging.getLogger().setLevel(app.config['LOG_LEVEL'].upper())

    qr_generator = QRGenerator()
    report_generator = ReportGenerator()

    app.extensions['qr_generator'] = qr_generator
    app.extensions['report_generator'] = report_generator

    @app.route('/health')
    def health():
        """Liveness probe"""
        return jsonify({'status': 'ok'})

    @app.route('/api/qr/generate', methods=['POST'])
    def generate_qr():
        """Generate a single QR code"""
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({
                'success': False,
                'error': 'Request body must be a JSON object'
            }), 400

        result = qr_generator.generate(payload)

        if not result['success']:
            return jsonify(result), 400

        if result['format'] == 'base64':
            return jsonify(_qr_result_json(result))

        return Response(result['image'], mimetype=result['mime_type'])

    @app.route('/api/qr/batch', methods=['POST'])
    def batch_qr():
        """Generate several QR codes in one request"""
        payload = request.get_json(silent=True) or {}
        items = payload.get('items') if isinstance(payload, dict) else None

        if not isinstance(items, list):
            return jsonify({
                'success': False,
                'error': "Request body must contain an 'items' list"
            }), 400

        results = qr_generator.batch_generate(items)
        return jsonify({
            'success': True,
            'results': [_qr_result_json(result) for result in results]
        })

    @app.route('/api/export', methods=['POST'])
    def export():
        """Export rows and return the artifact as a download"""
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({
                'success': False,
                'error': 'Request body must be a JSON object'
            }), 400

        try:
            if payload.get('template'):
                result = report_generator.export_report(
                    payload['template'],
                    payload.get('data') or [],
                    export_format=payload.get('format', 'csv'),
                    filename=payload.get('filename'),
                    **report_metadata_from_dict(payload)
                )
            else:
                result = report_generator.export_data(ExportRequest.from_dict(payload))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Rejected export request: {str(e)}")
            return jsonify({
                'success': False,
                'error': str(e),
                'error_type': 'invalid_option'
            }), 400

        if not result['success']:
            return jsonify(result), 400

        return report_generator.build_download_response(result)

    @app.route('/api/export/templates')
    def export_templates():
        """List the predefined report templates"""
        return jsonify({
            'success': True,
            'templates': report_generator.get_available_reports()
        })

    logger.info(f"Application created with '{config_name or 'default'}' configuration")
    return app


def _qr_result_json(result):
    """JSON-safe view of a generation result; PNG bytes become a data URI."""
    if not result['success']:
        return result

    image = result['image']
    if isinstance(image, bytes):
        image = f"data:{result['mime_type']};base64,{base64.b64encode(image).decode('ascii')}"

    return {**result, 'image': image}


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=5000)
