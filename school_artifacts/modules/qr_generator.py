"""
QR Code Generator Module - School Artifacts Service

This module turns a payload and branding options into QR code images for
marketing material, enrollment forms and invoices. Each generation is a
deterministic chain of image transforms over a single in-memory bitmap:

1. Base encoding (qrcode) scaled to the requested width
2. Module style post-processing (blur + threshold, rounded / circle)
3. Logo embedding on a white backing, centred
4. Frame text caption strip below the code
5. Serialization to PNG bytes, a base64 data URI, or SVG markup

SVG output is regenerated from the payload with a vector encoder (segno) and
does not carry the raster-only branding steps 2-4; see FORMAT_CAPABILITIES.
The module style filter is a visual approximation, not an encoding change:
aggressive settings can make a code unreadable, so the filter constants in
QRCodeConfig.STYLE_FILTERS are kept relative to the module size.
"""

import base64
import io
import logging
import math
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import qrcode
import segno
from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont, ImageOps, UnidentifiedImageError
from qrcode.exceptions import DataOverflowError

from config import QRCodeConfig
from .logo_sources import LogoFetchError, LogoSource, classify_logo_source, load_logo_bytes


class OutputFormat(str, Enum):
    PNG = 'png'
    SVG = 'svg'
    BASE64 = 'base64'


class ModuleStyle(str, Enum):
    SQUARE = 'square'
    ROUNDED = 'rounded'
    CIRCLE = 'circle'


ERROR_CORRECTION_LEVELS = {
    'L': qrcode.constants.ERROR_CORRECT_L,  # ~7% error correction
    'M': qrcode.constants.ERROR_CORRECT_M,  # ~15% error correction
    'Q': qrcode.constants.ERROR_CORRECT_Q,  # ~25% error correction
    'H': qrcode.constants.ERROR_CORRECT_H,  # ~30% error correction
}

# Branding features each output format honours
FORMAT_CAPABILITIES = {
    OutputFormat.PNG: frozenset({'module_style', 'logo', 'frame_text'}),
    OutputFormat.BASE64: frozenset({'module_style', 'logo', 'frame_text'}),
    OutputFormat.SVG: frozenset(),
}

MIME_TYPES = {
    OutputFormat.PNG: 'image/png',
    OutputFormat.BASE64: 'image/png',
    OutputFormat.SVG: 'image/svg+xml',
}

_HEX_COLOR = re.compile(r'^#[0-9A-Fa-f]{6}$')

WHITE = (255, 255, 255)


@dataclass
class QRGenerateOptions:
    """Options for a single QR code generation."""
    data: str
    width: int = QRCodeConfig.DEFAULT_WIDTH
    error_correction_level: str = QRCodeConfig.DEFAULT_ERROR_CORRECTION
    primary_color: str = QRCodeConfig.DEFAULT_PRIMARY_COLOR
    background_color: str = QRCodeConfig.DEFAULT_BACKGROUND_COLOR
    module_style: Union[ModuleStyle, str] = QRCodeConfig.DEFAULT_MODULE_STYLE
    logo: Optional[Union[str, LogoSource]] = None
    logo_size_ratio: float = QRCodeConfig.DEFAULT_LOGO_SIZE_RATIO
    frame_text: Optional[str] = None
    frame_text_size: int = QRCodeConfig.DEFAULT_FRAME_TEXT_SIZE
    frame_text_color: Optional[str] = None
    format: Union[OutputFormat, str] = OutputFormat.PNG

    # camelCase names used by the JSON API
    _ALIASES = {
        'errorCorrectionLevel': 'error_correction_level',
        'primaryColor': 'primary_color',
        'backgroundColor': 'background_color',
        'moduleStyle': 'module_style',
        'logoUrl': 'logo',
        'logo_url': 'logo',
        'logoSizeRatio': 'logo_size_ratio',
        'frameText': 'frame_text',
        'frameTextSize': 'frame_text_size',
        'frameTextColor': 'frame_text_color',
    }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> 'QRGenerateOptions':
        """
        Build options from a JSON-style payload.

        Args:
            payload (Mapping[str, Any]): camelCase or snake_case keys

        Returns:
            QRGenerateOptions: Parsed options; unset keys keep brand defaults
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in payload.items():
            name = cls._ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        if 'data' not in kwargs:
            raise ValueError('Missing required field: data')
        return cls(**kwargs)

    def requested_features(self) -> List[str]:
        requested = []
        if ModuleStyle(self.module_style) is not ModuleStyle.SQUARE:
            requested.append('module_style')
        if self.logo:
            requested.append('logo')
        if self.frame_text:
            requested.append('frame_text')
        return requested


class QRGenerator:
    """
    Branded QR code generator.
    Renders QR codes with custom colours, module styles, embedded logos and
    caption frames, in raster or vector formats.
    """

    def __init__(self, max_workers: int = None):
        """Initialize the QR code generator with brand settings."""
        self.logger = logging.getLogger(__name__)

        self.border = QRCodeConfig.BORDER
        self.frame_height = QRCodeConfig.FRAME_HEIGHT
        self.style_filters = QRCodeConfig.STYLE_FILTERS
        self.max_workers = max_workers or QRCodeConfig.BATCH_MAX_WORKERS

    def generate(self, options: Union[QRGenerateOptions, Mapping[str, Any]]) -> Dict[str, Any]:
        """
        Generate a QR code with optional branding.

        Args:
            options (QRGenerateOptions | Mapping): Generation options

        Returns:
            dict: Generation result with image data, MIME type and size
        """
        try:
            if not isinstance(options, QRGenerateOptions):
                options = QRGenerateOptions.from_dict(options)

            output_format, style, primary, background, text_color = self._validate(options)

            if output_format is OutputFormat.SVG:
                return self._generate_svg(options, primary, background)

            image, module_px = self._generate_base_qr(
                options.data, options.width, options.error_correction_level
            )

            if style is not ModuleStyle.SQUARE:
                image = self._apply_module_style(image, style, module_px)

            image = self._colorize(image, primary, background)
            height = options.width

            if options.logo:
                image = self._embed_logo(
                    image, classify_logo_source(options.logo), options.width, options.logo_size_ratio
                )

            if options.frame_text:
                image = self._add_frame_text(
                    image, options.frame_text, options.width, options.frame_text_size, text_color
                )
                height += self.frame_height

            png_bytes = self._to_png_bytes(image)

            if output_format is OutputFormat.BASE64:
                payload = f"data:image/png;base64,{base64.b64encode(png_bytes).decode('ascii')}"
            else:
                payload = png_bytes

            self.logger.info(
                f"QR code generated: {options.width}x{height} {output_format.value}, "
                f"level {options.error_correction_level}, style {style.value}"
            )
            return {
                'success': True,
                'image': payload,
                'mime_type': MIME_TYPES[output_format],
                'width': options.width,
                'height': height,
                'format': output_format.value,
                'ignored_features': []
            }

        except (DataOverflowError, segno.DataOverflowError) as e:
            self.logger.error(f"QR code encoding failed, payload too large: {str(e)}")
            return self._failure('Data too long to encode as a QR code at this error correction level',
                                 'encoding')
        except LogoFetchError as e:
            self.logger.error(f"QR logo could not be loaded: {str(e)}")
            return self._failure(str(e), 'asset_fetch')
        except (ValueError, TypeError) as e:
            self.logger.error(f"Invalid QR code options: {str(e)}")
            return self._failure(str(e), 'invalid_option')
        except Exception as e:
            self.logger.error(f"QR code generation failed: {str(e)}")
            return self._failure(str(e), 'generation_failed')

    def batch_generate(self, options_list: List[Union[QRGenerateOptions, Mapping[str, Any]]]) -> List[Dict[str, Any]]:
        """
        Generate several QR codes concurrently.

        Each request runs as an independent task; a failing request yields a
        failure result in its slot without affecting the others.

        Args:
            options_list (List[QRGenerateOptions]): Generation options

        Returns:
            List[dict]: One result per request, in input order
        """
        if not options_list:
            return []

        workers = min(self.max_workers, len(options_list))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='qr-batch') as executor:
            results = list(executor.map(self.generate, options_list))

        successful = sum(1 for result in results if result['success'])
        self.logger.info(f"Batch QR generation completed: {successful}/{len(results)} successful")
        return results

    def _validate(self, options: QRGenerateOptions) -> Tuple[OutputFormat, ModuleStyle, Tuple, Tuple, Tuple]:
        """
        Check options and resolve enum and colour values.

        Raises:
            ValueError: On any invalid option
        """
        if not isinstance(options.data, str) or options.data == '':
            raise ValueError('Data is required to generate a QR code')

        if isinstance(options.width, bool) or not isinstance(options.width, int) or options.width <= 0:
            raise ValueError(f'Width must be a positive integer, got {options.width!r}')

        if options.error_correction_level not in ERROR_CORRECTION_LEVELS:
            raise ValueError(f'Invalid error correction level: {options.error_correction_level!r}')

        try:
            output_format = OutputFormat(options.format)
        except ValueError:
            raise ValueError(f'Unsupported output format: {options.format!r}')

        try:
            style = ModuleStyle(options.module_style)
        except ValueError:
            raise ValueError(f'Unsupported module style: {options.module_style!r}')

        primary = parse_hex_color(options.primary_color)
        background = parse_hex_color(options.background_color)
        text_color = parse_hex_color(options.frame_text_color) if options.frame_text_color else primary

        if options.logo and not 0 < options.logo_size_ratio < 1:
            raise ValueError(f'Logo size ratio must be between 0 and 1, got {options.logo_size_ratio!r}')

        if options.frame_text and options.frame_text_size <= 0:
            raise ValueError('Frame text size must be positive')

        return output_format, style, primary, background, text_color

    def _generate_base_qr(self, data: str, width: int, level: str) -> Tuple[Image.Image, float]:
        """
        Encode the payload and render a black-on-white mask at the target width.

        Args:
            data (str): Payload
            width (int): Output width in pixels
            level (str): Error correction level

        Returns:
            Tuple[Image.Image, float]: 'L' mode mask (0 = dark module) and the
                module size in pixels
        """
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECTION_LEVELS[level],
            box_size=1,
            border=self.border
        )
        qr.add_data(data)
        try:
            qr.make(fit=True)
        except ValueError as e:
            # qrcode 8 reports a payload past version 40 as an invalid version
            raise DataOverflowError(str(e)) from e

        total_modules = qr.modules_count + 2 * self.border
        qr.box_size = max(1, math.ceil(width / total_modules))

        image = qr.make_image(fill_color='black', back_color='white').get_image().convert('L')
        if image.size != (width, width):
            image = image.resize((width, width), Image.NEAREST)

        return image, width / total_modules

    def _apply_module_style(self, mask: Image.Image, style: ModuleStyle,
                            module_px: float) -> Image.Image:
        """
        Approximate rounded or circular modules by blurring and re-thresholding.

        Args:
            mask (Image.Image): 'L' mode mask
            style (ModuleStyle): rounded or circle
            module_px (float): Module size in pixels

        Returns:
            Image.Image: Filtered mask
        """
        params = self.style_filters[style.value]
        radius = module_px * params['blur_ratio']
        threshold = params['threshold']

        blurred = mask.filter(ImageFilter.GaussianBlur(radius))
        return blurred.point(lambda value: 255 if value >= threshold else 0)

    def _colorize(self, mask: Image.Image, primary: Tuple, background: Tuple) -> Image.Image:
        dark = Image.new('RGB', mask.size, primary)
        light = Image.new('RGB', mask.size, background)
        return Image.composite(light, dark, mask)

    def _embed_logo(self, qr_img: Image.Image, source: LogoSource,
                    qr_width: int, size_ratio: float) -> Image.Image:
        """
        Paste a logo in the centre of the QR code.

        The logo is fitted into a square of qr_width * size_ratio preserving
        its aspect ratio, over a white backing so transparent areas do not
        reduce contrast.

        Args:
            qr_img (Image.Image): QR code image
            source (LogoSource): Logo source
            qr_width (int): QR image width
            size_ratio (float): Logo size relative to the width

        Returns:
            Image.Image: QR code with logo
        """
        logo_size = int(math.floor(qr_width * size_ratio))
        if logo_size < 1:
            return qr_img

        logo_bytes = load_logo_bytes(source)
        try:
            logo = Image.open(io.BytesIO(logo_bytes))
            logo.load()
        except (UnidentifiedImageError, OSError) as e:
            raise LogoFetchError(f"Logo is not a readable image: {e}") from e

        logo = ImageOps.contain(logo.convert('RGBA'), (logo_size, logo_size), Image.LANCZOS)

        backing = Image.new('RGB', (logo_size, logo_size), WHITE)
        offset = ((logo_size - logo.width) // 2, (logo_size - logo.height) // 2)
        backing.paste(logo, offset, logo)

        position = (qr_width - logo_size) // 2
        composed = qr_img.copy()
        composed.paste(backing, (position, position))
        return composed

    def _add_frame_text(self, qr_img: Image.Image, text: str, qr_width: int,
                        font_size: int, text_color: Tuple) -> Image.Image:
        """
        Extend the canvas with a white strip and draw a caption in it.

        Args:
            qr_img (Image.Image): QR code image
            text (str): Caption
            qr_width (int): QR image width
            font_size (int): Caption font size
            text_color (Tuple): Caption RGB colour

        Returns:
            Image.Image: Image of height qr_width + frame height
        """
        framed = Image.new('RGB', (qr_width, qr_width + self.frame_height), WHITE)
        framed.paste(qr_img, (0, 0))

        draw = ImageDraw.Draw(framed)
        font = self._load_frame_font(font_size)

        bbox = draw.textbbox((0, 0), text, font=font)
        text_width = bbox[2] - bbox[0]
        text_height = bbox[3] - bbox[1]
        x = (qr_width - text_width) // 2 - bbox[0]
        y = qr_width + (self.frame_height - text_height) // 2 - bbox[1]

        draw.text((x, y), text, fill=text_color, font=font)
        return framed

    def _load_frame_font(self, font_size: int):
        # Try a bold font, fallback to default if not available
        for font_name in QRCodeConfig.FRAME_FONTS:
            try:
                return ImageFont.truetype(font_name, font_size)
            except (IOError, OSError):
                continue
        return ImageFont.load_default()

    def _generate_svg(self, options: QRGenerateOptions, primary: Tuple,
                      background: Tuple) -> Dict[str, Any]:
        """
        Encode the payload directly as SVG markup.

        Module style, logo and frame text are raster-only and are not
        applied; the skipped features are reported in the result.
        """
        ignored = [feature for feature in options.requested_features()
                   if feature not in FORMAT_CAPABILITIES[OutputFormat.SVG]]
        if ignored:
            self.logger.warning(f"SVG output does not support {', '.join(ignored)}; rendering a plain QR code")

        qr = segno.make(
            options.data,
            error=options.error_correction_level.lower(),
            boost_error=False,
            micro=False
        )

        # One unit per module in the viewBox; the outer size is the exact pixel width
        buffer = io.BytesIO()
        qr.save(
            buffer,
            kind='svg',
            scale=1,
            border=self.border,
            omitsize=True,
            dark=_to_hex(primary),
            light=_to_hex(background)
        )
        markup = buffer.getvalue().decode('utf-8').replace(
            '<svg ', f'<svg width="{options.width}" height="{options.width}" ', 1
        )

        self.logger.info(f"SVG QR code generated: {options.width}x{options.width}")
        return {
            'success': True,
            'image': markup,
            'mime_type': MIME_TYPES[OutputFormat.SVG],
            'width': options.width,
            'height': options.width,
            'format': OutputFormat.SVG.value,
            'ignored_features': ignored
        }

    @staticmethod
    def _to_png_bytes(image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format='PNG')
        return buffer.getvalue()

    @staticmethod
    def _failure(error: str, error_type: str) -> Dict[str, Any]:
        return {
            'success': False,
            'error': error,
            'error_type': error_type
        }


def parse_hex_color(value: str) -> Tuple[int, int, int]:
    """
    Parse a '#RRGGBB' colour string.

    Raises:
        ValueError: If the string is not a six-digit hex colour
    """
    if not isinstance(value, str) or not _HEX_COLOR.match(value):
        raise ValueError(f'Invalid color {value!r}, expected #RRGGBB')
    return ImageColor.getrgb(value)


def _to_hex(rgb: Tuple[int, int, int]) -> str:
    return '#{:02x}{:02x}{:02x}'.format(*rgb[:3])


# Module-level instance for callers that do not need custom settings
qr_generator = QRGenerator()
