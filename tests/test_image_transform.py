"""Tests for square image cropping."""

import io

import pytest
from PIL import Image

from nine_grid.errors import ImageDecodeError
from nine_grid.services.images import ImageTransform, format_type
from tests.conftest import image_size, make_image


@pytest.mark.parametrize(
    ("width", "height"),
    [(400, 300), (300, 400), (1024, 17), (2, 1)],
)
def test_non_square_images_are_cropped_to_shorter_side(width: int, height: int) -> None:
    result = ImageTransform().square_crop(make_image(width, height))

    side = min(width, height)
    assert (result.width, result.height) == (side, side)
    assert image_size(result.data) == (side, side)
    assert result.content_type == "image/jpeg"
    assert result.extension == "jpg"
    assert result.processed


def test_square_image_keeps_dimensions() -> None:
    result = ImageTransform().square_crop(make_image(256, 256, "JPEG"))

    assert image_size(result.data) == (256, 256)


def test_crop_is_centered() -> None:
    image = Image.new("RGB", (300, 100), color=(0, 0, 255))
    image.paste((255, 0, 0), (100, 0, 200, 100))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")

    result = ImageTransform().square_crop(buffer.getvalue())

    with Image.open(io.BytesIO(result.data)) as cropped:
        red, green, blue = cropped.convert("RGB").getpixel((50, 50))
        left_red, _, left_blue = cropped.convert("RGB").getpixel((2, 50))
    assert red > 200 and green < 60 and blue < 60
    assert left_red > 200 and left_blue < 60


def test_undecodable_bytes_raise_decode_error() -> None:
    with pytest.raises(ImageDecodeError):
        ImageTransform().square_crop(b"definitely not an image")


def test_empty_bytes_raise_decode_error() -> None:
    with pytest.raises(ImageDecodeError):
        ImageTransform().square_crop(b"")


def test_crop_failure_falls_back_to_original(monkeypatch) -> None:
    original = make_image(40, 20)
    transform = ImageTransform()

    def broken(_image):  # type: ignore[no-untyped-def]
        raise OSError("encoder unavailable")

    monkeypatch.setattr(transform, "_crop_and_encode", broken)

    result = transform.square_crop(original)

    assert result.data == original
    assert not result.processed
    assert result.content_type == "image/png"
    assert result.extension == "png"
    assert (result.width, result.height) == (40, 20)


@pytest.mark.parametrize(
    ("image_format", "expected"),
    [
        ("JPEG", ("image/jpeg", "jpg")),
        ("MPO", ("image/jpeg", "jpg")),
        ("PNG", ("image/png", "png")),
        (None, ("application/octet-stream", "bin")),
    ],
)
def test_format_type(image_format, expected) -> None:
    assert format_type(image_format) == expected


def test_oversized_image_raises_decode_error(monkeypatch) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(ImageDecodeError):
        ImageTransform().square_crop(make_image(40, 20))
