"""
Data Model - Store Publisher

PURPOSE:
    Typed records for everything the publishing stages send to or read from
    the extension store API. The store speaks camelCase JSON; each record
    knows how to build itself from a response payload (from_dict) and, for
    the write-side records, how to render a request body (to_dict).

    Nothing here is persisted locally. Records are fetched, possibly mutated,
    pushed back, and then discarded.

DESIGN DECISIONS:
    - from_dict() tolerates missing keys and JSON nulls. The store omits or
      nulls empty fields on some endpoints; both read as "" or 0.
    - SoftwareVersion is frozen: it is a snapshot of the store catalog.
    - The review type is dual-keyed (numeric id + string name). Both keys are
      kept because the backend has changed representation before; stage 5
      checks either one.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


# ---------------------------------------------------------------------------
# SHARED
# ---------------------------------------------------------------------------


@dataclass
class Locale:
    id: int = 0
    name: str = ""

    @classmethod
    def from_dict(cls, payload: Optional[dict]) -> "Locale":
        payload = payload or {}
        return cls(id=payload.get("id") or 0, name=payload.get("name") or "")

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class SoftwareVersion:
    """One platform release from the store catalog."""

    id: int
    name: str
    selectable: bool = False
    major: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: dict) -> "SoftwareVersion":
        return cls(
            id=payload.get("id") or 0,
            name=payload.get("name") or "",
            selectable=bool(payload.get("selectable", False)),
            major=payload.get("major"),
        )


# ---------------------------------------------------------------------------
# BINARIES
# ---------------------------------------------------------------------------


class BinaryStatusKind(Enum):
    IN_REVIEW = "in-review"
    APPROVED = "approved"
    REJECTED = "rejected"
    OTHER = "other"


# Status names as the store reports them, mapped to our coarse enum.
_STATUS_KINDS = {
    "codereviewpending": BinaryStatusKind.IN_REVIEW,
    "waitingforcodereview": BinaryStatusKind.IN_REVIEW,
    "codereviewsucceeded": BinaryStatusKind.APPROVED,
    "approved": BinaryStatusKind.APPROVED,
    "codereviewfailed": BinaryStatusKind.REJECTED,
    "rejected": BinaryStatusKind.REJECTED,
}


@dataclass
class BinaryStatus:
    id: int = 0
    name: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, payload: Optional[dict]) -> "BinaryStatus":
        payload = payload or {}
        return cls(
            id=payload.get("id") or 0,
            name=payload.get("name") or "",
            description=payload.get("description") or "",
        )


@dataclass
class BinaryChangelog:
    id: int = 0
    locale: Locale = field(default_factory=Locale)
    text: str = ""

    @classmethod
    def from_dict(cls, payload: dict) -> "BinaryChangelog":
        return cls(
            id=payload.get("id") or 0,
            locale=Locale.from_dict(payload.get("locale")),
            text=payload.get("text") or "",
        )


@dataclass
class ExtensionBinary:
    """A build of an extension as the store knows it."""

    id: int
    name: str = ""
    version: str = ""
    status: BinaryStatus = field(default_factory=BinaryStatus)
    compatible_software_versions: List[SoftwareVersion] = field(default_factory=list)
    changelogs: List[BinaryChangelog] = field(default_factory=list)
    creation_date: str = ""
    last_change_date: str = ""
    ion_cube_encrypted: bool = False
    license_check_required: bool = False
    has_active_code_review_warnings: bool = False

    @property
    def status_kind(self) -> BinaryStatusKind:
        return _STATUS_KINDS.get((self.status.name or "").lower(), BinaryStatusKind.OTHER)

    @classmethod
    def from_dict(cls, payload: dict) -> "ExtensionBinary":
        return cls(
            id=payload.get("id") or 0,
            name=payload.get("name") or "",
            version=payload.get("version") or "",
            status=BinaryStatus.from_dict(payload.get("status")),
            compatible_software_versions=[
                SoftwareVersion.from_dict(item)
                for item in payload.get("compatibleSoftwareVersions") or []
            ],
            changelogs=[
                BinaryChangelog.from_dict(item)
                for item in payload.get("changelogs") or []
            ],
            creation_date=payload.get("creationDate") or "",
            last_change_date=payload.get("lastChangeDate") or "",
            ion_cube_encrypted=bool(payload.get("ionCubeEncrypted", False)),
            license_check_required=bool(payload.get("licenseCheckRequired", False)),
            has_active_code_review_warnings=bool(
                payload.get("hasActiveCodeReviewWarnings", False)
            ),
        )


@dataclass
class ChangelogEntry:
    locale: str
    text: str

    def to_dict(self) -> dict:
        return {"locale": self.locale, "text": self.text}


@dataclass
class ExtensionUpdate:
    """PUT body for an existing binary. The id only goes into the URL."""

    id: int
    software_versions: List[str] = field(default_factory=list)
    ion_cube_encrypted: bool = False
    license_check_required: bool = False
    changelogs: List[ChangelogEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "softwareVersions": list(self.software_versions),
            "ionCubeEncrypted": self.ion_cube_encrypted,
            "licenseCheckRequired": self.license_check_required,
            "changelogs": [entry.to_dict() for entry in self.changelogs],
        }


@dataclass
class ExtensionCreate:
    software_versions: List[str]
    changelogs: List[ChangelogEntry]
    version: str

    def to_dict(self) -> dict:
        return {
            "softwareVersions": list(self.software_versions),
            "changelogs": [entry.to_dict() for entry in self.changelogs],
            "version": self.version,
        }


# ---------------------------------------------------------------------------
# GALLERY IMAGES
# ---------------------------------------------------------------------------


@dataclass
class ImageDetail:
    id: int = 0
    preview: bool = False
    activated: bool = False
    caption: str = ""
    locale: Locale = field(default_factory=Locale)

    @classmethod
    def from_dict(cls, payload: dict) -> "ImageDetail":
        return cls(
            id=payload.get("id") or 0,
            preview=bool(payload.get("preview", False)),
            activated=bool(payload.get("activated", False)),
            caption=payload.get("caption") or "",
            locale=Locale.from_dict(payload.get("locale")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "preview": self.preview,
            "activated": self.activated,
            "caption": self.caption,
            "locale": self.locale.to_dict(),
        }


@dataclass
class ExtensionImage:
    """A screenshot in the extension's store gallery."""

    id: int
    remote_link: str = ""
    details: List[ImageDetail] = field(default_factory=list)
    priority: int = 0

    def detail_for_locale(self, locale_name: str) -> Optional[ImageDetail]:
        for detail in self.details:
            if detail.locale.name == locale_name:
                return detail
        return None

    @classmethod
    def from_dict(cls, payload: dict) -> "ExtensionImage":
        return cls(
            id=payload.get("id") or 0,
            remote_link=payload.get("remoteLink") or "",
            details=[ImageDetail.from_dict(item) for item in payload.get("details") or []],
            priority=payload.get("priority") or 0,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "remoteLink": self.remote_link,
            "details": [detail.to_dict() for detail in self.details],
            "priority": self.priority,
        }


# ---------------------------------------------------------------------------
# CODE REVIEW RESULTS
# ---------------------------------------------------------------------------


@dataclass
class ReviewType:
    id: int = 0
    name: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, payload: Optional[dict]) -> "ReviewType":
        payload = payload or {}
        return cls(
            id=payload.get("id") or 0,
            name=payload.get("name") or "",
            description=payload.get("description") or "",
        )


@dataclass
class SubCheckResult:
    sub_check: str = ""
    status: str = ""
    passed: bool = False
    message: str = ""
    has_warnings: bool = False

    @classmethod
    def from_dict(cls, payload: dict) -> "SubCheckResult":
        return cls(
            sub_check=payload.get("subCheck") or "",
            status=payload.get("status") or "",
            passed=bool(payload.get("passed", False)),
            message=payload.get("message") or "",
            has_warnings=bool(payload.get("hasWarnings", False)),
        )


@dataclass
class BinaryReviewResult:
    """One automated code review run, produced asynchronously by the store."""

    id: int = 0
    binary_id: int = 0
    type: ReviewType = field(default_factory=ReviewType)
    message: str = ""
    creation_date: str = ""
    sub_check_results: List[SubCheckResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: dict) -> "BinaryReviewResult":
        return cls(
            id=payload.get("id") or 0,
            binary_id=payload.get("binaryId") or 0,
            type=ReviewType.from_dict(payload.get("type")),
            message=payload.get("message") or "",
            creation_date=payload.get("creationDate") or "",
            sub_check_results=[
                SubCheckResult.from_dict(item)
                for item in payload.get("subCheckResults") or []
            ],
        )
