"""QR code image rendering on top of the `qrcode` library (Pillow backend).

Images are written as PNG files under `UPLOAD_DIR`; the stored path is the
upload directory joined with the generated file name.
"""
# app/services/qr_images.py
import base64
import os
import re
import secrets
import time
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q, ERROR_CORRECT_H
from PIL import Image, UnidentifiedImageError

from ulasis.app.core.config import settings
from ulasis.app.core.logging import get_logs_writer_logger
from ulasis.db.models.qr_code import MIN_SIZE, MAX_SIZE, DEFAULT_SIZE

logger = get_logs_writer_logger()

ERROR_CORRECTION = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}
DEFAULT_FOREGROUND = "#000000"
DEFAULT_BACKGROUND = "#FFFFFF"
HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
QR_FILE_RE = re.compile(r"^qr-\d+-\d+-[0-9a-f]{8}\.png$")

# share of the QR width a logo may cover, H level still decodes with this
LOGO_RATIO = 0.22


def generate_qr_data(questionnaire_id: int) -> str:
    token = f"{int(time.time() * 1000)}-{secrets.token_hex(16)}"
    return f"{settings.BASE_URL}{settings.API_PREFIX}/questionnaires/{questionnaire_id}?qr={token}"


def validate_options(options: dict) -> list[str]:
    errors = []
    size = options.get("size")
    if size is not None and (not isinstance(size, int) or not MIN_SIZE <= size <= MAX_SIZE):
        errors.append(f"size must be an integer between {MIN_SIZE} and {MAX_SIZE}")

    level = options.get("error_correction_level")
    level = getattr(level, "value", level)
    if level is not None and level not in ERROR_CORRECTION:
        errors.append("error_correction_level must be one of L, M, Q, H")

    colors = options.get("custom_colors") or {}
    for key in ("foreground", "background"):
        color = colors.get(key)
        if color is not None and not HEX_COLOR_RE.match(color):
            errors.append(f"{key} color must be a hex value like #1A2B3C")

    location_tag = options.get("location_tag")
    if location_tag is not None and len(location_tag) > 255:
        errors.append("location_tag must be at most 255 characters")
    return errors


def _render(data: str, options: dict, logo_path: str | None = None) -> Image.Image:
    level = getattr(options.get("error_correction_level"), "value", options.get("error_correction_level")) or "M"
    colors = options.get("custom_colors") or {}
    size = options.get("size") or DEFAULT_SIZE

    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECTION["H" if logo_path else level],
        box_size=10,
        border=1,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(
        fill_color=colors.get("foreground") or DEFAULT_FOREGROUND,
        back_color=colors.get("background") or DEFAULT_BACKGROUND,
    ).get_image().convert("RGB")
    img = img.resize((size, size), Image.NEAREST)

    if logo_path:
        with Image.open(logo_path) as logo:
            side = max(1, int(size * LOGO_RATIO))
            logo = logo.convert("RGBA")
            logo.thumbnail((side, side))
            offset = ((size - logo.width) // 2, (size - logo.height) // 2)
            img.paste(logo, offset, mask=logo)
    return img


def _filename(questionnaire_id: int) -> str:
    return f"qr-{questionnaire_id}-{int(time.time() * 1000)}-{secrets.token_hex(4)}.png"


def generate_qr_code(questionnaire_id: int, options: dict | None = None, data: str | None = None, logo_path: str | None = None) -> dict:
    """Render a PNG for the questionnaire into the upload directory.

    Returns:
        dict: `data` (encoded URL), `image_path` and `filename`.
    """
    options = options or {}
    data = data or generate_qr_data(questionnaire_id)
    filename = _filename(questionnaire_id)

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    image_path = os.path.join(settings.UPLOAD_DIR, filename)
    _render(data, options, logo_path).save(image_path, format="PNG")

    return {"data": data, "image_path": image_path, "filename": filename, "has_logo": bool(logo_path)}


def generate_qr_code_data_url(data: str, options: dict | None = None) -> str:
    buffer = BytesIO()
    _render(data, options or {}).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


def generate_qr_code_with_logo(questionnaire_id: int, logo_path: str, options: dict | None = None, data: str | None = None) -> dict:
    if not os.path.isfile(logo_path):
        raise LookupError("Logo file not found")
    return generate_qr_code(questionnaire_id, options, data=data, logo_path=logo_path)


def save_logo(content: bytes, qr_code_id: int) -> str:
    """Validate an uploaded logo and store it as PNG next to the QR images."""
    try:
        with Image.open(BytesIO(content)) as logo:
            logo.load()
            logo = logo.convert("RGBA")
    except (UnidentifiedImageError, OSError):
        raise ValueError("Logo must be a PNG, JPEG or GIF image") from None

    logo_dir = os.path.join(settings.UPLOAD_DIR, "logos")
    os.makedirs(logo_dir, exist_ok=True)
    path = os.path.join(logo_dir, f"logo-{qr_code_id}-{secrets.token_hex(4)}.png")
    logo.save(path, format="PNG")
    return path


def delete_qr_code_image(image_path: str | None) -> bool:
    if not image_path or not os.path.isfile(image_path):
        return False
    os.remove(image_path)
    logger.info("Deleted QR image %s", image_path)
    return True


def cleanup_orphaned_images(active_paths: set[str]) -> int:
    """Remove generated PNGs that no stored QR code points at."""
    if not os.path.isdir(settings.UPLOAD_DIR):
        return 0
    active = {os.path.basename(p) for p in active_paths}
    removed = 0
    for name in os.listdir(settings.UPLOAD_DIR):
        if QR_FILE_RE.match(name) and name not in active:
            os.remove(os.path.join(settings.UPLOAD_DIR, name))
            removed += 1
    if removed:
        logger.info("Removed %d orphaned QR image(s)", removed)
    return removed


def batch_generate_qr_codes(questionnaire_id: int, locations: list[str], base_options: dict | None = None) -> list[dict]:
    """One image per location tag; a failing location does not stop the rest."""
    results = []
    for location in locations:
        options = dict(base_options or {}, location_tag=location)
        errors = validate_options(options)
        if errors:
            results.append({"location_tag": location, "success": False, "error": "; ".join(errors)})
            continue
        generated = generate_qr_code(questionnaire_id, options)
        results.append({"location_tag": location, "success": True, **generated})
    return results
