"""
Local shelf label generator.
Uses PIL/Pillow and python-barcode to render a price label as a PNG data URL.
"""
import io
import base64
import logging
from decimal import Decimal
from PIL import Image, ImageDraw, ImageFont
from typing import Optional
import barcode
from barcode.writer import ImageWriter

logger = logging.getLogger(__name__)


def _load_fonts():
    """DejaVu (Linux) or Arial (Windows/Mac), falling back to PIL's default font"""
    for bold, regular in (
        ('/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf', '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf'),
        ('arialbd.ttf', 'arial.ttf'),
    ):
        try:
            return (
                ImageFont.truetype(bold, 36),
                ImageFont.truetype(regular, 16),
                ImageFont.truetype(regular, 12),
            )
        except (OSError, IOError):
            continue
    default = ImageFont.load_default()
    return default, default, default


def _centered_text(draw, width, y, text, font):
    bbox = draw.textbbox((0, 0), text, font=font)
    text_width = bbox[2] - bbox[0]
    draw.text(((width - text_width) // 2, y), text, fill='black', font=font)
    return bbox[3] - bbox[1]


def format_price(price) -> str:
    return f"${Decimal(price):.2f}"


def generate_shelf_label(
    item_name: str,
    price_inc_gst,
    barcode_value: Optional[str] = None,
    subtitle: Optional[str] = None,
    width: int = 400,  # 4 inches at 100 DPI
    height: int = 200,  # 2 inches at 100 DPI
) -> str:
    """
    Render a shelf price label.

    Layout: item name (top), price inc GST (large, middle), optional
    Code128 barcode with its value underneath.

    Returns:
        Base64-encoded PNG image as data URL string
    """
    max_name_length = 34
    if len(item_name) > max_name_length:
        item_name = item_name[:max_name_length] + '...'

    img = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(img)
    font_price, font_name, font_small = _load_fonts()

    y = 8
    y += _centered_text(draw, width, y, item_name, font_name) + 6
    if subtitle:
        y += _centered_text(draw, width, y, subtitle[:40], font_small) + 4
    y += _centered_text(draw, width, y, format_price(price_inc_gst), font_price) + 10

    if barcode_value:
        try:
            code128 = barcode.get_barcode_class('code128')
            barcode_img = code128(barcode_value, writer=ImageWriter()).render({
                'write_text': False,
                'module_width': 0.3,
                'module_height': 10.0,
                'quiet_zone': 2.0,
                'background': 'white',
                'foreground': 'black',
            })

            available_height = height - y - 18
            if available_height > 10:
                img_width, img_height = barcode_img.size
                scale = min((width - 20) / img_width, available_height / img_height)
                new_size = (max(1, int(img_width * scale)), max(1, int(img_height * scale)))
                barcode_img = barcode_img.resize(new_size, Image.Resampling.BILINEAR)
                img.paste(barcode_img, ((width - new_size[0]) // 2, y))
                y += new_size[1] + 2
            _centered_text(draw, width, y, barcode_value, font_small)
        except Exception as e:
            # Unencodable value: print it as text so the label is still usable
            logger.error(f"Barcode generation failed for '{barcode_value}': {str(e)}")
            _centered_text(draw, width, y, f'BARCODE: {barcode_value}', font_small)

    buffer = io.BytesIO()
    img.save(buffer, format='PNG', optimize=False, compress_level=1)
    image_base64 = base64.b64encode(buffer.getvalue()).decode('utf-8')
    buffer.close()
    img.close()

    return f'data:image/png;base64,{image_base64}'


def generate_item_label(item) -> str:
    return generate_shelf_label(
        item_name=item.name,
        price_inc_gst=item.current_sell_inc_gst,
        barcode_value=item.barcode or None,
        subtitle=item.vendor.name if item.vendor_id else None,
    )
