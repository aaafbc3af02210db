# School Artifacts Service Configuration

import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).parent.absolute()

class Config:
    """Base configuration class"""

    # Flask Configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'school-artifacts-secret-key'
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB max request size

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_FILE = BASE_DIR / 'logs' / 'artifacts.log'
    LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT = 5

    # Development Configuration
    DEBUG = os.environ.get('DEBUG', 'False').lower() in ['true', 'on', '1']
    TESTING = False

    @staticmethod
    def init_app(app):
        """Initialize application configuration"""
        app.config.update({
            'SECRET_KEY': Config.SECRET_KEY,
            'MAX_CONTENT_LENGTH': Config.MAX_CONTENT_LENGTH,
        })

class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False

    # More verbose logging
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Production logging
    LOG_LEVEL = 'WARNING'

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)

        # Production-specific initialization
        import logging
        from logging.handlers import RotatingFileHandler

        # Setup file logging
        if not app.debug:
            cls.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                cls.LOG_FILE,
                maxBytes=cls.LOG_MAX_BYTES,
                backupCount=cls.LOG_BACKUP_COUNT
            )
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
            ))
            file_handler.setLevel(logging.INFO)
            app.logger.addHandler(file_handler)

            app.logger.setLevel(logging.INFO)
            app.logger.info('School Artifacts service startup')


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


# Additional Configuration Classes
class QRCodeConfig:
    """QR Code specific configuration"""

    # Brand defaults applied when a request leaves an option unset
    DEFAULT_WIDTH = int(os.environ.get('QR_DEFAULT_WIDTH') or 400)
    DEFAULT_ERROR_CORRECTION = os.environ.get('QR_DEFAULT_ERROR_CORRECTION') or 'M'
    DEFAULT_PRIMARY_COLOR = os.environ.get('QR_PRIMARY_COLOR') or '#000000'
    DEFAULT_BACKGROUND_COLOR = os.environ.get('QR_BACKGROUND_COLOR') or '#FFFFFF'
    DEFAULT_MODULE_STYLE = 'square'
    DEFAULT_LOGO_SIZE_RATIO = 0.2
    DEFAULT_FRAME_TEXT_SIZE = 16

    # Symbol layout
    BORDER = 4  # Quiet zone in modules (minimum is 4)
    FRAME_HEIGHT = 60  # Caption strip height in pixels

    # Module style post-processing: blur radius as a fraction of the
    # module size in pixels, and the luminance cut-off for dark pixels
    STYLE_FILTERS = {
        'rounded': {'blur_ratio': 0.22, 'threshold': 128},
        'circle': {'blur_ratio': 0.4, 'threshold': 110},
    }

    # Font lookup for frame captions, first match wins
    FRAME_FONTS = ['arialbd.ttf', 'Arial Bold.ttf', 'DejaVuSans-Bold.ttf']

    # Logo fetching
    LOGO_FETCH_TIMEOUT = float(os.environ.get('QR_LOGO_FETCH_TIMEOUT') or 10)
    LOGO_MAX_BYTES = 5 * 1024 * 1024  # 5MB

    # Batch processing
    BATCH_MAX_WORKERS = int(os.environ.get('QR_BATCH_MAX_WORKERS') or 8)

    # Tracked payloads
    SCAN_PATH = '/api/qr/scan'
    SHORT_CODE_LENGTH = 8


class ExportConfig:
    """Export engine configuration"""

    # pt-BR number rendering
    DECIMAL_SEPARATOR = ','
    THOUSANDS_SEPARATOR = '.'
    CURRENCY_SYMBOL = 'R$'
    MAX_NUMBER_FRACTION_DIGITS = 3

    # Dates are rendered in this zone when the value carries a timezone
    TIMEZONE = os.environ.get('EXPORT_TIMEZONE') or 'America/Sao_Paulo'
    DATE_FORMAT = '%d/%m/%Y'
    DATETIME_FORMAT = '%d/%m/%Y %H:%M:%S'

    # Spreadsheet output
    SHEET_NAME = 'Dados'
    DEFAULT_COLUMN_WIDTH = 15

    # Print-ready HTML
    DEFAULT_TITLE = 'Relatório'
    DEFAULT_FOOTER = 'Documento gerado automaticamente pelo sistema Node Zero'
    DISCLAIMER = 'Este documento é válido para fins de verificação fiscal e contábil.'

    # Limits
    MAX_RECORDS = int(os.environ.get('EXPORT_MAX_RECORDS') or 100000)


# Environment-specific configurations
def get_config(config_name=None):
    """Get configuration based on environment variable"""
    if config_name is None:
        config_name = os.environ.get('APP_ENV', 'default')
    return config.get(config_name, DevelopmentConfig)


# Validation functions
def validate_config():
    """Validate configuration settings"""
    errors = []

    if QRCodeConfig.DEFAULT_ERROR_CORRECTION not in ('L', 'M', 'Q', 'H'):
        errors.append(f"Invalid QR_DEFAULT_ERROR_CORRECTION: {QRCodeConfig.DEFAULT_ERROR_CORRECTION}")

    if QRCodeConfig.DEFAULT_WIDTH <= 0:
        errors.append("QR_DEFAULT_WIDTH must be positive")

    if QRCodeConfig.BATCH_MAX_WORKERS <= 0:
        errors.append("QR_BATCH_MAX_WORKERS must be positive")

    for style, params in QRCodeConfig.STYLE_FILTERS.items():
        if not 0 < params['threshold'] < 255:
            errors.append(f"Threshold for style '{style}' must be between 0 and 255")

    return errors


# Initialize configuration
def init_config(app, config_name=None):
    """Initialize application with configuration"""
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    config_class.init_app(app)

    # Validate configuration
    errors = validate_config()
    if errors:
        for error in errors:
            app.logger.error(f"Configuration error: {error}")
        raise RuntimeError("Configuration validation failed")

    return config_class
