"""
Stage 1: Filter Software Versions - Store Publisher

PURPOSE:
    Pick the platform releases an extension binary should be marked as
    compatible with. The store catalog lists every platform version ever
    released; the extension's composer manifest declares a constraint such as
    ">=6.4.0.0, <6.6.0.0" or "~6.5.0". This stage keeps the catalog entries
    that are selectable, parse as versions, and satisfy the constraint.

CALLED BY:
    stage_6_publish_binary.py - to compute the softwareVersions list sent
    when a binary is created or updated.

DEPENDS ON:
    - packaging (Version / SpecifierSet) for version parsing and comparison

CONSTRAINT GRAMMAR:
    - "||" separates alternatives; a version matches if ANY alternative does
    - Inside an alternative, clauses separated by commas or whitespace must
      ALL hold
    - Clauses: >=V  >V  <=V  <V  !=V  =V  ==V  V  V.*  ~V  ^V  ~=V  *
      ~V  (tilde): the last given component may grow. ~6.4.0 means
          >=6.4.0,<6.5 and ~6.4 means >=6.4,<7
      ^V  (caret): anything up to the next breaking release. ^6.4 means
          >=6.4,<7 and ^0.3.1 means >=0.3.1,<0.4

DESIGN DECISIONS:
    - Filtering itself cannot fail. Non-selectable entries and entries whose
      name does not parse are skipped, not reported. An empty list is a
      normal answer.
    - A malformed constraint IS an error, but it surfaces in
      parse_constraint(), before any filtering happens.
    - Pre-releases (6.6.0.0-rc1) are compared like any other version. The
      store marks which ones are selectable.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from _store_publisher.store_errors import VersionConstraintError
from _store_publisher.store_models import SoftwareVersion

_OPERATOR_ONLY = re.compile(r"^(>=|<=|!=|==|~=|=|>|<|~|\^)$")
_CLAUSE = re.compile(r"^(>=|<=|!=|==|~=|=|>|<|~|\^)?(.*)$")


@dataclass(frozen=True)
class VersionConstraint:
    """A parsed constraint: a list of alternatives, each a SpecifierSet."""

    expression: str
    alternatives: Tuple[SpecifierSet, ...]

    def check(self, version: Version) -> bool:
        return any(spec.contains(version, prereleases=True) for spec in self.alternatives)

    def allows(self, name: str) -> bool:
        """True if `name` parses as a version and satisfies the constraint."""
        try:
            version = Version(name)
        except InvalidVersion:
            return False
        return self.check(version)

    def __str__(self) -> str:
        return self.expression


ConstraintLike = Union[VersionConstraint, str]


def parse_constraint(expression: str) -> VersionConstraint:
    """
    Parse a constraint expression into a VersionConstraint.

    Raises:
        VersionConstraintError: the expression is empty or malformed.
    """
    if not expression or not expression.strip():
        raise VersionConstraintError(expression, "empty constraint")

    alternatives = []
    for group in expression.split("||"):
        clauses = _split_clauses(expression, group)
        if not clauses:
            raise VersionConstraintError(expression, "empty alternative around '||'")

        specifiers: List[str] = []
        for clause in clauses:
            specifiers.extend(_translate_clause(expression, clause))

        try:
            alternatives.append(SpecifierSet(",".join(specifiers)))
        except InvalidSpecifier as e:
            raise VersionConstraintError(expression, str(e)) from e

    return VersionConstraint(expression=expression, alternatives=tuple(alternatives))


def filter_on_version(
    versions: Iterable[SoftwareVersion], constraint: ConstraintLike
) -> List[SoftwareVersion]:
    """Return the selectable versions matching `constraint`, in input order."""
    if isinstance(constraint, str):
        constraint = parse_constraint(constraint)

    return [
        sw_version
        for sw_version in versions
        if sw_version.selectable and constraint.allows(sw_version.name)
    ]


def filter_on_version_string_list(
    versions: Iterable[SoftwareVersion], constraint: ConstraintLike
) -> List[str]:
    """Same as filter_on_version() but returns only the version names."""
    return [sw_version.name for sw_version in filter_on_version(versions, constraint)]


# ---------------------------------------------------------------------------
# PRIVATE HELPER FUNCTIONS
# ---------------------------------------------------------------------------


def _split_clauses(expression: str, group: str) -> List[str]:
    """
    Split one alternative into clauses.

    A bare operator followed by whitespace (">= 6.4") is glued back onto the
    version that follows it.
    """
    tokens = [token for token in re.split(r"[,\s]+", group.strip()) if token]
    clauses = []
    pending_operator = ""

    for token in tokens:
        if _OPERATOR_ONLY.match(token):
            if pending_operator:
                raise VersionConstraintError(expression, f"dangling operator {pending_operator!r}")
            pending_operator = token
            continue
        clauses.append(pending_operator + token)
        pending_operator = ""

    if pending_operator:
        raise VersionConstraintError(expression, f"operator {pending_operator!r} without a version")

    return clauses


def _translate_clause(expression: str, clause: str) -> List[str]:
    """Translate one clause into PEP 440 specifier strings."""
    match = _CLAUSE.match(clause)
    operator = match.group(1) or ""
    version = match.group(2)

    if not version:
        raise VersionConstraintError(expression, f"missing version in {clause!r}")

    # "x" wildcards are common in composer files: 6.4.x -> 6.4.*
    version = re.sub(r"\.[xX]$", ".*", version)

    if version == "*":
        return []

    if operator in ("", "=", "=="):
        return [f"=={version}"]
    if operator == "~":
        release = _release_of(expression, version)
        if len(release) == 1:
            upper = (release[0] + 1,)
        else:
            upper = release[:-2] + (release[-2] + 1,)
        return [f">={version}", f"<{_join(upper)}"]
    if operator == "^":
        release = _release_of(expression, version)
        index = next((i for i, part in enumerate(release) if part != 0), len(release) - 1)
        upper = release[:index] + (release[index] + 1,)
        return [f">={version}", f"<{_join(upper)}"]

    return [f"{operator}{version}"]


def _release_of(expression: str, version: str) -> Tuple[int, ...]:
    try:
        return Version(version).release
    except InvalidVersion as e:
        raise VersionConstraintError(expression, str(e)) from e


def _join(release: Tuple[int, ...]) -> str:
    return ".".join(str(part) for part in release)
