"""
Stage 2: Normalize Icon - Store Publisher

PURPOSE:
    The store shows extension icons at exactly 256x256 pixels. This stage
    takes whatever image the extension ships (any size, PNG/JPEG/GIF/...)
    and returns bytes ready for upload:

    - already 256x256: the original file bytes, untouched (no re-encode)
    - anything else:   resized onto a fresh 256x256 RGBA canvas with bicubic
                       (Catmull-Rom class) resampling, encoded as PNG

CALLED BY:
    stage_3_upload_files.py - upload_extension_icon() normalizes before it
    builds the multipart body.

DEPENDS ON:
    - Pillow for decoding (format auto-detection), resizing and PNG encoding

FAILURE MODES:
    - The file can't be read      -> ArtifactReadError
    - The bytes aren't an image   -> IconDecodeError
    Both are raised before any request is made, so no partial upload happens.
"""

import io
import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Tuple, Union

from PIL import Image, UnidentifiedImageError

from _store_publisher.store_errors import ArtifactReadError, IconDecodeError

logger = logging.getLogger(__name__)

ICON_SIZE = (256, 256)


@dataclass
class NormalizedIcon:
    filename: str
    content: bytes
    resized: bool
    original_size: Tuple[int, int]


def normalize_icon(source: Union[str, os.PathLike, BinaryIO]) -> NormalizedIcon:
    """
    Decode an icon and make sure it is exactly 256x256.

    Args:
        source: Path to the image, or an open binary file object.

    Returns:
        NormalizedIcon with the upload filename, the bytes to upload, whether
        a resize happened, and the original dimensions.
    """
    label = "normalize_icon"
    name, raw = _read_source(label, source)

    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            width, height = img.size

            if (width, height) == ICON_SIZE:
                logger.debug("Store icon image is already 256x256, copying original file")
                return NormalizedIcon(
                    filename=os.path.basename(name),
                    content=raw,
                    resized=False,
                    original_size=(width, height),
                )

            logger.info("Resizing store icon image from %dx%d to 256x256", width, height)
            canvas = img.convert("RGBA").resize(ICON_SIZE, Image.Resampling.BICUBIC)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise IconDecodeError(label, name, str(e)) from e

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")

    stem, _ = os.path.splitext(os.path.basename(name))
    return NormalizedIcon(
        filename=f"{stem or 'icon'}.png",
        content=buffer.getvalue(),
        resized=True,
        original_size=(width, height),
    )


def _read_source(label: str, source) -> Tuple[str, bytes]:
    if isinstance(source, (str, os.PathLike)):
        path = os.fspath(source)
        try:
            with open(path, "rb") as f:
                return path, f.read()
        except OSError as e:
            raise ArtifactReadError(label, path, str(e)) from e

    name = str(getattr(source, "name", "icon"))
    try:
        return name, source.read()
    except OSError as e:
        raise ArtifactReadError(label, name, str(e)) from e
