import io
import math
import re

from PIL import Image, UnidentifiedImageError
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from utils.errors import ValidationFailed

FONT_NAME = "Helvetica-Bold"
DEFAULT_FONT_SIZE = 32
MIN_FONT_SIZE = 6
MAX_FONT_SIZE = 200
DEFAULT_COLOR = (0.07, 0.07, 0.07)  # #121212
DEFAULT_ALIGN = "center"

PDF_MIME = "application/pdf"
IMAGE_FORMATS = {"image/png": "PNG", "image/jpeg": "JPEG"}

_HEX_COLOR = re.compile(r"^#?([0-9a-f]{6})$", re.IGNORECASE)


class UnsupportedTemplate(ValidationFailed):
    default_message = "Unsupported template image type for generation. Please upload PDF, PNG, or JPG."


def clamp01(value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def parse_hex_color(value):
    """``#rrggbb`` (leading # optional) as 0-1 RGB floats, or None."""
    if not value:
        return None
    m = _HEX_COLOR.match(value.strip())
    if not m:
        return None
    v = m.group(1)
    return tuple(int(v[i:i + 2], 16) / 255 for i in (0, 2, 4))


def resolve_font_size(font_size):
    if font_size is None:
        return DEFAULT_FONT_SIZE
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, float(font_size)))


def resolve_page_index(page, page_count):
    """Clamp a 1-based page number onto the document's pages."""
    return max(0, min(page_count - 1, int(math.floor(page)) - 1))


def text_origin(page_width, page_height, placement, text_width, font_size):
    """Bottom-left origin for the name text.

    ``x_pct`` is the anchor the text is aligned against; ``y_pct`` is measured
    from the top of the page and the text is centred vertically on it.
    """
    align = placement.align or DEFAULT_ALIGN
    anchor_x = clamp01(placement.x_pct) * page_width
    if align == "center":
        x = anchor_x - text_width / 2
    elif align == "right":
        x = anchor_x - text_width
    else:
        x = anchor_x

    y_from_top = clamp01(placement.y_pct) * page_height
    y = max(0, page_height - y_from_top - font_size / 2)

    return max(0, min(page_width - 1, x)), max(0, min(page_height - 1, y))


def _image_to_pdf(template_bytes, mime):
    try:
        image = Image.open(io.BytesIO(template_bytes))
        image.load()
    except (UnidentifiedImageError, OSError):
        raise UnsupportedTemplate()
    if image.format != IMAGE_FORMATS[mime]:
        raise UnsupportedTemplate()

    width, height = image.size
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(width, height))
    c.drawImage(ImageReader(image), 0, 0, width=width, height=height)
    c.showPage()
    c.save()
    return buf.getvalue()


def load_template(template_bytes, mime):
    """Template as a writable PDF. Images become a single page the size of the image."""
    if mime == PDF_MIME:
        pdf_bytes = template_bytes
    elif mime in IMAGE_FORMATS:
        pdf_bytes = _image_to_pdf(template_bytes, mime)
    else:
        raise UnsupportedTemplate()
    try:
        return PdfWriter(clone_from=PdfReader(io.BytesIO(pdf_bytes)))
    except PdfReadError:
        raise UnsupportedTemplate("Certificate template is not a readable PDF.")


def render_certificate(template_bytes, mime, placement, name):
    """Draw ``name`` onto the template at ``placement`` and return the PDF bytes."""
    writer = load_template(template_bytes, mime)
    page = writer.pages[resolve_page_index(placement.page, len(writer.pages))]

    box = page.mediabox
    left, bottom = float(box.left), float(box.bottom)
    page_width, page_height = float(box.width), float(box.height)

    font_size = resolve_font_size(placement.font_size)
    color = parse_hex_color(placement.color) or DEFAULT_COLOR
    text_width = stringWidth(name, FONT_NAME, font_size)
    x, y = text_origin(page_width, page_height, placement, text_width, font_size)

    overlay_buf = io.BytesIO()
    c = canvas.Canvas(overlay_buf, pagesize=(left + page_width, bottom + page_height))
    c.setFillColorRGB(*color)
    c.setFont(FONT_NAME, font_size)
    c.drawString(left + x, bottom + y, name)
    c.showPage()
    c.save()

    overlay = PdfReader(io.BytesIO(overlay_buf.getvalue())).pages[0]
    page.merge_page(overlay)

    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()
