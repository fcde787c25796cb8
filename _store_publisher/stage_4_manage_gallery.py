"""
Stage 4: Manage Gallery - Store Publisher

PURPOSE:
    Create, read, update and delete the screenshots shown on an extension's
    store page (GET|POST /plugins/{id}/pictures, PUT|DELETE
    /plugins/{id}/pictures/{imageId}).

CALLED BY:
    Callers syncing screenshots from the extension's store metadata. Not
    part of the binary publishing sequence in stage 6.

DESIGN DECISIONS:
    - Screenshots are uploaded raw. Unlike the icon there is no resize.
    - Images come back sorted by priority, which is the order the store
      page displays them in.
    - When adding an image the store replies with a list that should hold
      only the new image. We check that instead of trusting it, and raise
      UnexpectedResponseError if the list has any other length.
"""

import logging
import os
from typing import List

from _store_publisher.stage_3_upload_files import build_multipart_body, read_local_file
from _store_publisher.store_api import StoreAPI
from _store_publisher.store_errors import UnexpectedResponseError
from _store_publisher.store_models import ExtensionImage

logger = logging.getLogger(__name__)


def get_extension_images(api: StoreAPI, extension_id: int) -> List[ExtensionImage]:
    """List the gallery images of an extension, ordered by priority."""
    payload = api.get("get_extension_images", f"{api.extension_path(extension_id)}/pictures")
    images = [ExtensionImage.from_dict(item) for item in payload or []]
    return sorted(images, key=lambda image: image.priority)


def delete_extension_image(api: StoreAPI, extension_id: int, image_id: int):
    api.delete(
        "delete_extension_image",
        f"{api.extension_path(extension_id)}/pictures/{image_id}",
    )
    logger.info("Deleted image %d of extension %d", image_id, extension_id)


def update_extension_image(api: StoreAPI, extension_id: int, image: ExtensionImage):
    """Push captions, preview/activated flags and priority of `image`."""
    api.put(
        "update_extension_image",
        f"{api.extension_path(extension_id)}/pictures/{image.id}",
        json_body=image.to_dict(),
    )


def add_extension_image(api: StoreAPI, extension_id: int, path: str) -> ExtensionImage:
    """
    Upload a new screenshot and return the image record the store created.

    Raises:
        ArtifactReadError: the file can't be read.
        UnexpectedResponseError: the store did not answer with exactly one image.
    """
    label = "add_extension_image"

    content = read_local_file(label, path)
    body, content_type = build_multipart_body(os.path.basename(path), content)

    payload = api.post_multipart(
        label,
        f"{api.extension_path(extension_id)}/pictures",
        body,
        content_type,
    )

    if not isinstance(payload, list) or len(payload) != 1:
        count = len(payload) if isinstance(payload, list) else "no"
        raise UnexpectedResponseError(
            label, f"expected a list with exactly one new image, got {count} entries"
        )

    image = ExtensionImage.from_dict(payload[0])
    logger.info("Added image %d to extension %d", image.id, extension_id)
    return image
