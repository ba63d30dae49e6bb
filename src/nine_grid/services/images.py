"""Square thumbnail preparation for grid uploads."""

import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from nine_grid.errors import ImageDecodeError

logger = logging.getLogger(__name__)

_FORMAT_TYPES = {
    "JPEG": ("image/jpeg", "jpg"),
    "MPO": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "GIF": ("image/gif", "gif"),
    "WEBP": ("image/webp", "webp"),
    "BMP": ("image/bmp", "bmp"),
    "TIFF": ("image/tiff", "tiff"),
}


@dataclass(frozen=True)
class SquareImage:
    """Encoded image ready for upload."""

    data: bytes
    width: int
    height: int
    content_type: str
    extension: str
    processed: bool = True


@dataclass
class ImageTransform:
    """Center-crop images to a square and re-encode them as JPEG."""

    quality: int = 92

    def square_crop(self, data: bytes) -> SquareImage:
        """Return a centered ``min(w, h)`` square crop of the image.

        Raises ImageDecodeError when the bytes are not a readable image. When
        decoding works but cropping or encoding fails, the original bytes are
        returned with ``processed=False`` so the upload can still go through.
        """
        image = _decode(data)
        try:
            return self._crop_and_encode(image)
        except Exception:
            logger.warning(
                "Square crop failed, falling back to original image",
                exc_info=True,
                extra={"size": image.size, "format": image.format},
            )
            content_type, extension = format_type(image.format)
            width, height = image.size
            return SquareImage(
                data=data,
                width=width,
                height=height,
                content_type=content_type,
                extension=extension,
                processed=False,
            )
        finally:
            image.close()

    def _crop_and_encode(self, image: Image.Image) -> SquareImage:
        oriented = ImageOps.exif_transpose(image)
        width, height = oriented.size
        size = min(width, height)
        left = (width - size) // 2
        top = (height - size) // 2
        cropped = oriented.crop((left, top, left + size, top + size))
        if cropped.mode not in ("RGB", "L"):
            cropped = cropped.convert("RGB")

        buffer = io.BytesIO()
        cropped.save(buffer, format="JPEG", quality=self.quality, optimize=True)
        logger.debug(
            "Image cropped to square",
            extra={"original_size": (width, height), "square_size": size},
        )
        return SquareImage(
            data=buffer.getvalue(),
            width=size,
            height=size,
            content_type="image/jpeg",
            extension="jpg",
        )


def format_type(image_format: str | None) -> tuple[str, str]:
    """Return the content type and extension for a Pillow format name."""
    return _FORMAT_TYPES.get(image_format or "", ("application/octet-stream", "bin"))

def _decode(data: bytes) -> Image.Image:
    """Open and fully load an image from raw bytes."""
    if not data:
        raise ImageDecodeError("Empty upload")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as exc:
        raise ImageDecodeError(f"Unable to decode image: {exc}") from exc
    return image
