"""
Placeholder covers for PDF uploads that arrive without one.

No page rendering: the cover is a diagonal gradient with the page count.
"""
import io
import logging

from PIL import Image, ImageDraw, ImageFont
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from zimshelf.exceptions import ThumbnailException

logger = logging.getLogger('main')

THUMBNAIL_WIDTH = 400
THUMBNAIL_HEIGHT = 600
GRADIENT_START = (14, 165, 233)   # #0ea5e9
GRADIENT_END = (37, 99, 235)      # #2563eb
JPEG_QUALITY = 90


def count_pdf_pages(pdf_bytes: bytes) -> int:
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        return len(reader.pages)
    except (PdfReadError, ValueError, OSError) as e:
        raise ThumbnailException(f"Could not read PDF: {e}") from e


def _load_font(size):
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        # Pillow < 10.1 has no sized default font
        return ImageFont.load_default()


def _draw_centered(draw, text, center_y, font):
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = (THUMBNAIL_WIDTH - (right - left)) / 2
    y = center_y - (bottom - top) / 2
    draw.text((x, y), text, fill="white", font=font)


def render_placeholder_cover(page_count: int) -> Image.Image:
    w, h = THUMBNAIL_WIDTH, THUMBNAIL_HEIGHT

    # Top-left to bottom-right blend
    mask = Image.new("L", (w, h))
    mask.putdata([int(255 * (x / w + y / h) / 2) for y in range(h) for x in range(w)])
    img = Image.composite(Image.new("RGB", (w, h), GRADIENT_END), Image.new("RGB", (w, h), GRADIENT_START), mask)

    draw = ImageDraw.Draw(img)
    _draw_centered(draw, "PDF Document", h * 0.5, _load_font(24))
    _draw_centered(draw, f"{page_count} pages", h * 0.6, _load_font(16))
    return img


def generate_pdf_thumbnail(pdf_bytes: bytes) -> bytes:
    """JPEG bytes of a placeholder cover for the given PDF."""
    page_count = count_pdf_pages(pdf_bytes)
    img = render_placeholder_cover(page_count)

    buffer = io.BytesIO()
    img.save(buffer, "JPEG", quality=JPEG_QUALITY)
    logger.debug(f"Generated placeholder cover for {page_count} page PDF")
    return buffer.getvalue()
