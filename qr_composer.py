import base64
import logging
import math
import re
from io import BytesIO
from typing import Any, Mapping, Optional, TypedDict

import qrcode
from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageOps

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 512
DEFAULT_MAX_SIZE = 4096
DEFAULT_ERROR_CORRECTION = "H"
DEFAULT_DARK_COLOR = "#000000"
DEFAULT_LIGHT_COLOR = "#FFFFFF"
QUIET_ZONE_MODULES = 1
ICON_RATIO = 0.25
MASK_SUPERSAMPLE = 4

ERROR_CORRECTION_LEVELS = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}

_ERROR_CORRECTION_NAMES = {
    "LOW": "L",
    "MEDIUM": "M",
    "QUARTILE": "Q",
    "HIGH": "H",
}

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class GenerationOptions(TypedDict):
    content: str
    dark_color: str
    light_color: str
    size: int
    error_correction: str
    margin: int


def _parse_size(raw: Any, max_size: int) -> int:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_SIZE
    if not math.isfinite(value) or value < 1 or value > max_size:
        return DEFAULT_SIZE
    return int(value)


def _parse_error_correction(raw: Any) -> str:
    if not isinstance(raw, str):
        return DEFAULT_ERROR_CORRECTION
    level = raw.strip().upper()
    level = _ERROR_CORRECTION_NAMES.get(level, level)
    if level not in ERROR_CORRECTION_LEVELS:
        return DEFAULT_ERROR_CORRECTION
    return level


def _parse_color(raw: Any, default: str) -> str:
    if isinstance(raw, str) and _HEX_COLOR.match(raw.strip()):
        return raw.strip()
    return default


def normalize_options(
    fields: Mapping[str, Any], max_size: int = DEFAULT_MAX_SIZE
) -> GenerationOptions:
    """
    Turn the raw request fields into a fully populated options record.
    Missing or unusable values are replaced by defaults; nothing here raises.
    The caller is responsible for rejecting a missing ``content``.
    """
    content = fields.get("content")
    return {
        "content": "" if content is None else str(content),
        "dark_color": _parse_color(fields.get("qrColor"), DEFAULT_DARK_COLOR),
        "light_color": _parse_color(fields.get("bgColor"), DEFAULT_LIGHT_COLOR),
        "size": _parse_size(fields.get("size"), max_size),
        "error_correction": _parse_error_correction(fields.get("errorCorrection")),
        "margin": QUIET_ZONE_MODULES,
    }


def render_qr(options: GenerationOptions) -> Image.Image:
    """
    Render the QR code as an RGBA image of exactly ``size`` pixels square.
    Raises qrcode.exceptions.DataOverflowError when the content does not fit
    at the requested error-correction level; newer qrcode releases raise
    ValueError for the same condition.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECTION_LEVELS[options["error_correction"]],
        border=options["margin"],
    )
    qr.add_data(options["content"])
    qr.make(fit=True)

    # get_matrix() includes the quiet zone.
    matrix = qr.get_matrix()
    modules = len(matrix)
    mask = Image.new("L", (modules, modules))
    mask.putdata([255 if dark else 0 for row in matrix for dark in row])

    size = options["size"]
    mask = mask.resize((size, size), resample=Image.Resampling.NEAREST)
    dark = Image.new("RGBA", (size, size), ImageColor.getcolor(options["dark_color"], "RGBA"))
    light = Image.new("RGBA", (size, size), ImageColor.getcolor(options["light_color"], "RGBA"))
    return Image.composite(dark, light, mask)


def circular_icon(icon_bytes: bytes, side: int) -> Image.Image:
    """Crop the icon to a ``side`` square and cut it to an inscribed circle."""
    with Image.open(BytesIO(icon_bytes)) as source:
        icon = ImageOps.fit(
            source.convert("RGBA"),
            (side, side),
            method=Image.Resampling.LANCZOS,
        )

    # drawn oversized and downsampled for an anti-aliased edge
    large = side * MASK_SUPERSAMPLE
    mask = Image.new("L", (large, large), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, large - 1, large - 1), fill=255)
    mask = mask.resize((side, side), resample=Image.Resampling.LANCZOS)

    # destination-in: keep the icon only where the circle is opaque
    icon.putalpha(ImageChops.multiply(icon.getchannel("A"), mask))
    return icon


def compose(options: GenerationOptions, icon_bytes: Optional[bytes] = None) -> bytes:
    """Render the code, overlay the icon at its center if given, return PNG bytes."""
    image = render_qr(options)

    if icon_bytes is not None:
        side = max(1, math.floor(options["size"] * ICON_RATIO))
        icon = circular_icon(icon_bytes, side)
        offset = ((image.width - side) // 2, (image.height - side) // 2)
        image.alpha_composite(icon, dest=offset)
        logger.debug("Composited %dpx icon at %s", side, offset)

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def to_data_url(png_bytes: bytes) -> str:
    encoded = base64.b64encode(png_bytes).decode("ascii")
    return f"data:image/png;base64,{encoded}"
