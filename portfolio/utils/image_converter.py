"""
WebP conversion for uploads.
Images are re-encoded as WebP before they go to Cloudinary when that makes
them smaller; otherwise the original bytes are kept.
"""
import io
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85  # 0-100
DEFAULT_WEBP_METHOD = 6    # 0-6, higher = better compression but slower
MAX_DIMENSION = 3840       # longest side before downscaling, None to disable


@dataclass
class PreparedImage:
    data: bytes
    filename: str
    content_type: str


def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    method: int = DEFAULT_WEBP_METHOD,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Tuple[bytes, bool]:
    """
    Re-encode image bytes as WebP.

    Returns:
        Tuple[bytes, bool]: converted bytes and True, or the original bytes
        and False when the input is already WebP or cannot be decoded
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        if image.format == "WEBP":
            return image_bytes, False

        # WebP keeps alpha, so only palette and exotic modes need converting
        if image.mode == "P":
            image = image.convert("RGBA")
        elif image.mode not in ("RGB", "RGBA", "LA"):
            image = image.convert("RGB")

        if max_dimension and max(image.size) > max_dimension:
            image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
            logger.info(f"Downscaled image to {image.size[0]}x{image.size[1]}")

        buffer = io.BytesIO()
        image.save(buffer, format="WEBP", quality=quality, method=method, lossless=quality == 100)
        return buffer.getvalue(), True

    except UnidentifiedImageError as e:
        logger.warning(f"Cannot identify image format: {str(e)}")
        return image_bytes, False
    except OSError as e:
        logger.error(f"Error converting image to WebP: {str(e)}", exc_info=True)
        return image_bytes, False


def prepare_upload(image_bytes: bytes, filename: str, content_type: str) -> PreparedImage:
    """
    Pick the smaller of the original and its WebP rendition.
    The file name's extension follows the chosen format.
    """
    converted, ok = convert_to_webp(image_bytes)
    if not ok or len(converted) >= len(image_bytes):
        logger.debug(f"Keeping original encoding for {filename}")
        return PreparedImage(image_bytes, filename, content_type)

    stem = os.path.splitext(filename)[0] or "image"
    logger.info(
        f"Converted {filename} to WebP: "
        f"{len(image_bytes):,} bytes -> {len(converted):,} bytes"
    )
    return PreparedImage(converted, f"{stem}.webp", "image/webp")
