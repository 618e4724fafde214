import base64
import os
import re

import pytest
from PIL import Image

from ulasis.app.core.config import settings
from ulasis.app.services import qr_images


def test_qr_data_points_at_questionnaire():
    data = qr_images.generate_qr_data(7)
    pattern = re.escape(f"{settings.BASE_URL}{settings.API_PREFIX}/questionnaires/7?qr=") + r"\d{13}-[0-9a-f]{32}$"
    assert re.match(pattern, data)
    assert qr_images.generate_qr_data(7) != data


@pytest.mark.parametrize("options, fragment", [
    ({"size": 49}, "size"),
    ({"size": 1001}, "size"),
    ({"size": "200"}, "size"),
    ({"error_correction_level": "X"}, "error_correction_level"),
    ({"custom_colors": {"background": "#FFF"}}, "background"),
    ({"location_tag": "x" * 256}, "location_tag"),
])
def test_validate_options_rejects(options, fragment):
    errors = qr_images.validate_options(options)
    assert len(errors) == 1
    assert fragment in errors[0]


def test_validate_options_accepts_defaults_and_bounds():
    assert qr_images.validate_options({}) == []
    assert qr_images.validate_options({
        "size": 50,
        "error_correction_level": "H",
        "custom_colors": {"foreground": "#007a7a", "background": "#FFFFFF"},
    }) == []
    assert qr_images.validate_options({"size": 1000}) == []


def test_generated_png_has_requested_size(upload_dir):
    result = qr_images.generate_qr_code(3, {"size": 250, "custom_colors": {"foreground": "#112233"}})
    assert re.match(r"^qr-3-\d+-[0-9a-f]{8}\.png$", result["filename"])
    assert result["image_path"] == os.path.join(str(upload_dir), result["filename"])
    assert result["has_logo"] is False
    with Image.open(result["image_path"]) as img:
        assert img.size == (250, 250)


def test_data_url():
    url = qr_images.generate_qr_code_data_url("https://ulasis.id/q/1", {"size": 100})
    assert url.startswith("data:image/png;base64,")
    raw = base64.b64decode(url.split(",", 1)[1])
    assert raw[:8] == b"\x89PNG\r\n\x1a\n"


def test_logo_overlay(logo_png):
    logo_path = qr_images.save_logo(logo_png, 1)
    result = qr_images.generate_qr_code_with_logo(1, logo_path, {"size": 300})
    assert result["has_logo"] is True
    with Image.open(result["image_path"]) as img:
        # logo colour in the middle of the code
        assert img.convert("RGB").getpixel((150, 150)) == (200, 30, 30)


def test_missing_logo_file():
    with pytest.raises(LookupError):
        qr_images.generate_qr_code_with_logo(1, "/nonexistent/logo.png")


def test_save_logo_rejects_non_images():
    with pytest.raises(ValueError):
        qr_images.save_logo(b"definitely not an image", 1)


def test_delete_image(upload_dir):
    result = qr_images.generate_qr_code(1)
    assert qr_images.delete_qr_code_image(result["image_path"]) is True
    assert qr_images.delete_qr_code_image(result["image_path"]) is False
    assert qr_images.delete_qr_code_image(None) is False


def test_batch_generation():
    results = qr_images.batch_generate_qr_codes(5, ["A", "B"], {"size": 120})
    assert [r["location_tag"] for r in results] == ["A", "B"]
    assert all(r["success"] and os.path.isfile(r["image_path"]) for r in results)
    assert results[0]["data"] != results[1]["data"]


def test_orphan_cleanup_without_directory(upload_dir):
    assert not upload_dir.exists()
    assert qr_images.cleanup_orphaned_images(set()) == 0
