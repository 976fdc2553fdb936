"""
Target Resolver

Turns the kind-specific query parameters into exactly one FollowTarget.

Rules (enforced in code, in this order):
- At most one of name / organisation_id / function_tag per request
- At least one of them (NoTarget lets the caller pick a fallback)
- A person name has at least two tokens, checked before any lookup
- An organisation may skip verification only with a Wikidata id (Q123)
- Verification never rewrites a function tag

Verification uses the directory's result order as-is: for people the
first match wins.
"""

import re
from typing import Protocol, Sequence

from ..errors import (
    AmbiguousDirectoryMatch,
    AmbiguousTarget,
    InvalidPersonName,
    NoTarget,
    TargetNotFound,
    VerificationRequired,
)
from ..observability import get_logger
from ..schemas import (
    FollowTarget,
    OrganisationMatch,
    PersonMatch,
    TagMatch,
    TargetKind,
    TargetParams,
)

logger = get_logger(__name__)

EXTERNAL_ID_PATTERN = re.compile(r"^Q\d+$")


class Directory(Protocol):
    """What the resolver needs from a directory (DirectoryClient or a test stub)."""

    async def search_person(self, raw_name: str) -> Sequence[PersonMatch]: ...

    async def search_organisation_by_external_id(self, external_id: str) -> Sequence[OrganisationMatch]: ...

    async def search_tag(self, tag: str) -> Sequence[TagMatch]: ...


class TargetResolver:
    """Resolves request parameters to a FollowTarget, optionally verifying it."""

    def __init__(self, directory: Directory):
        self._directory = directory

    async def resolve(self, params: TargetParams, verify: bool = True) -> FollowTarget:
        """
        Resolve one follow target.

        Args:
            params: The raw kind-specific parameters
            verify: Confirm the target against the directory

        Returns:
            The resolved FollowTarget

        Raises:
            TargetValidationError subclasses for caller mistakes,
            DirectoryUnavailable when the directory cannot be queried
        """
        present = params.present()

        if len(present) > 1:
            raise AmbiguousTarget()
        if not present:
            raise NoTarget()

        kind, value = next(iter(present.items()))

        if kind == TargetKind.PERSON:
            target = await self._resolve_person(value, verify)
        elif kind == TargetKind.ORGANISATION:
            target = await self._resolve_organisation(value, verify)
        else:
            target = await self._resolve_function_tag(value, verify)

        logger.info(
            "Target resolved",
            kind=target.kind.value,
            verified=target.verified,
        )
        return target

    async def _resolve_person(self, name: str, verify: bool) -> FollowTarget:
        tokens = name.split()
        if len(tokens) < 2:
            raise InvalidPersonName(name)

        label = " ".join(tokens)
        if verify:
            matches = await self._directory.search_person(name)
            if not matches:
                raise TargetNotFound("person", name)
            label = matches[0].full_name

        return FollowTarget(
            kind=TargetKind.PERSON,
            raw_input=name,
            canonical_label=label,
            canonical_id=label,
            verified=verify,
        )

    async def _resolve_organisation(self, organisation_id: str, verify: bool) -> FollowTarget:
        normalized = organisation_id.upper()

        if not verify:
            if not EXTERNAL_ID_PATTERN.match(normalized):
                raise VerificationRequired(normalized)
            return FollowTarget(
                kind=TargetKind.ORGANISATION,
                raw_input=organisation_id,
                canonical_label=normalized,
                canonical_id=normalized,
                verified=False,
            )

        matches = await self._directory.search_organisation_by_external_id(normalized)
        if not matches:
            raise TargetNotFound("organisation", normalized)
        if len(matches) > 1:
            raise AmbiguousDirectoryMatch(normalized, len(matches))

        match = matches[0]
        return FollowTarget(
            kind=TargetKind.ORGANISATION,
            raw_input=organisation_id,
            canonical_label=match.name,
            canonical_id=match.id.upper(),
            verified=True,
        )

    async def _resolve_function_tag(self, tag: str, verify: bool) -> FollowTarget:
        if verify:
            matches = await self._directory.search_tag(tag)
            if not matches:
                raise TargetNotFound("function tag", tag)

        # TODO: map function tags to human labels once the directory exposes them
        return FollowTarget(
            kind=TargetKind.FUNCTION_TAG,
            raw_input=tag,
            canonical_label=tag,
            canonical_id=tag,
            verified=verify,
        )
