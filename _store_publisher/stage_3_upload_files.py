"""
Stage 3: Upload Files - Store Publisher

PURPOSE:
    Multipart uploads of the two files that make up a release:

    1. The build artifact (zip), attached to one specific binary:
       POST /producers/{producerId}/plugins/{extensionId}/binaries/{binaryId}/file
    2. The extension icon, attached to the extension itself (not to a binary):
       POST /plugins/{extensionId}/icon

CALLED BY:
    stage_6_publish_binary.py. stage_4_manage_gallery.py reuses the multipart
    helpers for screenshots.

DEPENDS ON:
    - urllib3's multipart encoder (ships with requests) to build the body
    - stage_2_normalize_icon.py for the icon

DESIGN DECISIONS:
    - The whole body is built in memory and sent with an explicit
      "multipart/form-data; boundary=..." header. Artifacts are a few MB at
      most, so streaming isn't worth the complexity.
    - Each upload is sent once. No retries here: if the store is flaky the
      caller sees the error and decides.
    - Local files are read inside `with` blocks and closed before the
      request starts.
"""

import logging
import mimetypes
import os
from typing import Tuple

from urllib3 import encode_multipart_formdata

from _store_publisher.stage_2_normalize_icon import NormalizedIcon, normalize_icon
from _store_publisher.store_api import StoreAPI
from _store_publisher.store_errors import ArtifactReadError

logger = logging.getLogger(__name__)


def build_multipart_body(
    filename: str, content: bytes, field_name: str = "file"
) -> Tuple[bytes, str]:
    """
    Encode a single file as a multipart/form-data body.

    Returns:
        (body, content_type) where content_type carries the boundary.
    """
    mime_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return encode_multipart_formdata({field_name: (filename, content, mime_type)})


def read_local_file(label: str, path: str) -> bytes:
    """Read a whole file, turning OS errors into ArtifactReadError."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise ArtifactReadError(label, str(path), str(e)) from e


def upload_binary_file(api: StoreAPI, extension_id: int, binary_id: int, zip_path: str):
    """Attach the build artifact at `zip_path` to an existing binary."""
    label = "update_extension_binary_file"

    content = read_local_file(label, zip_path)
    body, content_type = build_multipart_body(os.path.basename(zip_path), content)

    logger.info(
        "Uploading %s (%d bytes) to binary %d of extension %d",
        os.path.basename(zip_path), len(content), binary_id, extension_id,
    )
    api.post_multipart(
        label,
        f"{api.producer_path(extension_id)}/binaries/{binary_id}/file",
        body,
        content_type,
    )


def upload_extension_icon(api: StoreAPI, extension_id: int, icon_path: str) -> NormalizedIcon:
    """
    Normalize the icon to 256x256 and upload it for the extension.

    Decoding happens first; an unreadable or broken image never reaches
    the network.
    """
    icon = normalize_icon(icon_path)
    body, content_type = build_multipart_body(icon.filename, icon.content)

    api.post_multipart(
        "update_extension_icon",
        f"{api.extension_path(extension_id)}/icon",
        body,
        content_type,
    )
    return icon
