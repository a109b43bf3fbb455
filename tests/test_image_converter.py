import io

from PIL import Image

from portfolio.utils.image_converter import convert_to_webp, prepare_upload
from tests.conftest import make_png


def noisy_png(size=(128, 128)) -> bytes:
    image = Image.effect_noise(size, 64).convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def test_convert_png_to_webp():
    converted, ok = convert_to_webp(noisy_png())

    assert ok
    assert Image.open(io.BytesIO(converted)).format == "WEBP"


def test_webp_input_is_left_alone():
    webp, _ = convert_to_webp(make_png())

    again, ok = convert_to_webp(webp)
    assert not ok
    assert again == webp


def test_undecodable_bytes_are_returned_unchanged():
    converted, ok = convert_to_webp(b"definitely not an image")

    assert not ok
    assert converted == b"definitely not an image"


def test_oversized_images_are_downscaled():
    converted, ok = convert_to_webp(make_png(size=(400, 100)), max_dimension=200)

    assert ok
    assert Image.open(io.BytesIO(converted)).size == (200, 50)


def test_prepare_upload_prefers_the_smaller_encoding():
    original = noisy_png()

    prepared = prepare_upload(original, "sketch.png", "image/png")

    assert len(prepared.data) <= len(original)
    if prepared.content_type == "image/webp":
        assert prepared.filename == "sketch.webp"
    else:
        assert prepared.filename == "sketch.png"
        assert prepared.data == original


def test_prepare_upload_keeps_unreadable_files():
    prepared = prepare_upload(b"\x00\x01", "mystery.heic", "image/heic")

    assert (prepared.data, prepared.filename, prepared.content_type) == (b"\x00\x01", "mystery.heic", "image/heic")
