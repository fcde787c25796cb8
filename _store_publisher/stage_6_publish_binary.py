"""
Stage 6: Publish Binary - Store Publisher

PURPOSE:
    The end of the pipeline. Takes a built extension zip and gets it into
    the store, ready for code review:

      1. Work out the target platform versions (stage 1)
      2. Create the binary record (or update the one already carrying this
         version) -> binary id
      3. Attach the artifact to that binary id (stage 3)
      4. Optionally replace the extension icon (stage 3, extension level)
      5. Trigger the automated code review (stage 5)

    Waiting for the review verdict is NOT part of this stage. The caller runs
    review_poller.poll_review() afterwards with its own interval and budget.

CALLED BY:
    Release tooling (CLI, CI jobs). Command-line parsing and reading the
    extension's composer manifest happen there.

FAILURE BEHAVIOUR:
    Fail fast. Whatever step raises, the error propagates and nothing is
    rolled back. In particular a binary record created in step 2 stays on
    the store without a file if step 3 fails. Re-running with
    reuse_existing_binary=True (the default) picks that record up again
    instead of creating a second one.
"""

import logging
import os
from typing import Iterable, List, Optional

from _store_publisher.stage_1_filter_software_versions import (
    ConstraintLike,
    filter_on_version_string_list,
)
from _store_publisher.stage_3_upload_files import upload_binary_file, upload_extension_icon
from _store_publisher.stage_5_code_review import trigger_code_review
from _store_publisher.store_api import StoreAPI
from _store_publisher.store_errors import UnexpectedResponseError
from _store_publisher.store_models import (
    ChangelogEntry,
    ExtensionBinary,
    ExtensionCreate,
    ExtensionUpdate,
    SoftwareVersion,
)

logger = logging.getLogger(__name__)


def publish_extension_binary(
    api: StoreAPI,
    extension_id: int,
    version: str,
    artifact_path: str,
    software_versions: Iterable,
    changelogs: List[ChangelogEntry],
    constraint: Optional[ConstraintLike] = None,
    icon_path: Optional[str] = None,
    ion_cube_encrypted: bool = False,
    license_check_required: bool = False,
    reuse_existing_binary: bool = True,
) -> dict:
    """
    Create (or refresh) a binary, upload its file and start the code review.

    Args:
        api: Client for the producer account that owns the extension.
        extension_id: Store id of the extension.
        version: Version string of the build (from composer.json).
        artifact_path: Path to the zip to upload.
        software_versions: SoftwareVersion records from the store catalog
                           and/or plain version names. Filtered through
                           stage 1 when `constraint` is given, sent as-is
                           otherwise.
        changelogs: Per-locale changelog entries.
        constraint: Version constraint from the extension's composer manifest.
        icon_path: Icon to upload; skipped when None.
        ion_cube_encrypted / license_check_required: Binary flags, only sent
                           when an existing binary is updated.
        reuse_existing_binary: Update the binary with the same version if the
                           store already has one instead of creating another.

    Returns:
        dict with keys:
            - 'binary_id' (int)
            - 'binary_created' (bool): False when an existing binary was reused
            - 'software_versions' (list[str]): names sent to the store
            - 'icon_updated' (bool)
            - 'review_triggered' (bool)
    """

    # -----------------------------------------------------------------------
    # STEP 1: Target platform versions
    # -----------------------------------------------------------------------

    target_versions = _resolve_software_versions(software_versions, constraint)
    logger.info(
        "Publishing version %s of extension %d for %d platform versions",
        version, extension_id, len(target_versions),
    )

    # -----------------------------------------------------------------------
    # STEP 2: Binary record
    # -----------------------------------------------------------------------

    existing = None
    if reuse_existing_binary:
        existing = next(
            (b for b in get_extension_binaries(api, extension_id) if b.version == version),
            None,
        )

    if existing is not None:
        logger.info("Updating existing binary %d for version %s", existing.id, version)
        update_extension_binary_info(
            api,
            extension_id,
            ExtensionUpdate(
                id=existing.id,
                software_versions=target_versions,
                ion_cube_encrypted=ion_cube_encrypted,
                license_check_required=license_check_required,
                changelogs=changelogs,
            ),
        )
        binary = existing
    else:
        binary = create_extension_binary(
            api,
            extension_id,
            ExtensionCreate(
                software_versions=target_versions,
                changelogs=changelogs,
                version=version,
            ),
        )
        logger.info("Created binary %d for version %s", binary.id, version)

    # -----------------------------------------------------------------------
    # STEP 3: Artifact
    # -----------------------------------------------------------------------

    upload_binary_file(api, extension_id, binary.id, artifact_path)

    # -----------------------------------------------------------------------
    # STEP 4: Icon (extension level, independent of the binary)
    # -----------------------------------------------------------------------

    icon_updated = False
    if icon_path:
        upload_extension_icon(api, extension_id, icon_path)
        logger.info("Updated store icon from %s", os.path.basename(icon_path))
        icon_updated = True

    # -----------------------------------------------------------------------
    # STEP 5: Code review
    # -----------------------------------------------------------------------

    trigger_code_review(api, extension_id)

    return {
        "binary_id": binary.id,
        "binary_created": existing is None,
        "software_versions": target_versions,
        "icon_updated": icon_updated,
        "review_triggered": True,
    }


# ---------------------------------------------------------------------------
# BINARY RECORDS
# ---------------------------------------------------------------------------


def get_extension_binaries(api: StoreAPI, extension_id: int) -> List[ExtensionBinary]:
    payload = api.get("get_extension_binaries", f"{api.producer_path(extension_id)}/binaries")
    return [ExtensionBinary.from_dict(item) for item in payload or []]


def create_extension_binary(
    api: StoreAPI, extension_id: int, create: ExtensionCreate
) -> ExtensionBinary:
    label = "create_extension_binary"
    payload = api.post(
        label,
        f"{api.producer_path(extension_id)}/binaries",
        json_body=create.to_dict(),
    )
    if not isinstance(payload, dict) or not payload.get("id"):
        raise UnexpectedResponseError(label, "response does not carry a binary id")
    return ExtensionBinary.from_dict(payload)


def update_extension_binary_info(api: StoreAPI, extension_id: int, update: ExtensionUpdate):
    """PUT the binary metadata. Repeating the same update is harmless."""
    api.put(
        "update_extension_binary_info",
        f"{api.producer_path(extension_id)}/binaries/{update.id}",
        json_body=update.to_dict(),
    )


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _resolve_software_versions(
    software_versions: Iterable, constraint: Optional[ConstraintLike]
) -> List[str]:
    # plain names count as selectable catalog entries
    versions = [
        v if isinstance(v, SoftwareVersion) else SoftwareVersion(id=0, name=str(v), selectable=True)
        for v in software_versions
    ]
    if constraint is None:
        return [v.name for v in versions]
    return filter_on_version_string_list(versions, constraint)
