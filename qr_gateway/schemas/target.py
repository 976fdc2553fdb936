"""
Follow Target Schema

Who does the user want to follow?
A person, an organisation, or a function tag: exactly one, per request.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TargetKind(str, Enum):
    """Kinds of follow targets understood by the bot."""
    PERSON = "person"
    ORGANISATION = "organisation"
    FUNCTION_TAG = "function_tag"


# Bot command verb per kind
START_VERBS = {
    TargetKind.PERSON: "Rechercher",
    TargetKind.ORGANISATION: "SuivreO",
    TargetKind.FUNCTION_TAG: "SuivreF",
}

# Query parameter that selects each kind on the gateway's own endpoints
QUERY_PARAMS = {
    TargetKind.PERSON: "name",
    TargetKind.ORGANISATION: "organisation_id",
    TargetKind.FUNCTION_TAG: "function_tag",
}


class TargetParams(BaseModel):
    """
    The three kind-specific query parameters, as submitted.

    Empty or whitespace-only values count as absent.
    """
    name: Optional[str] = None
    organisation_id: Optional[str] = None
    function_tag: Optional[str] = None

    def present(self) -> dict[TargetKind, str]:
        """Non-empty parameters keyed by the kind they select."""
        values = {
            TargetKind.PERSON: self.name,
            TargetKind.ORGANISATION: self.organisation_id,
            TargetKind.FUNCTION_TAG: self.function_tag,
        }
        return {
            kind: value.strip()
            for kind, value in values.items()
            if value is not None and value.strip()
        }


class FollowTarget(BaseModel):
    """
    The resolved, unambiguous subject of a follow action.

    Built per request by the TargetResolver; never persisted.
    """
    kind: TargetKind = Field(
        ...,
        description="Which kind of target this is"
    )

    raw_input: str = Field(
        ...,
        min_length=1,
        description="Parameter value as submitted, before verification"
    )

    canonical_label: str = Field(
        ...,
        min_length=1,
        description="Display name: from the directory if verified, else from raw input"
    )

    canonical_id: str = Field(
        ...,
        min_length=1,
        description="Stable identifier used in bot commands and URLs"
    )

    verified: bool = Field(
        default=False,
        description="Whether the directory confirmed this target"
    )

    model_config = {
        "frozen": True,
    }

    @property
    def command_argument(self) -> str:
        """Argument appended to the bot verb."""
        if self.kind == TargetKind.PERSON:
            return self.canonical_label
        return self.canonical_id

    @property
    def start_command(self) -> str:
        return f"{START_VERBS[self.kind]} {self.command_argument}"

    @property
    def deep_link_command(self) -> str:
        """
        Command pre-filled in messenger deep links.

        Follow verbs are sent as search verbs (SuivreO -> RechercherO):
        the bot then shows the target before the user subscribes.
        """
        command = self.start_command
        if command.startswith("Suivre"):
            return "Rechercher" + command[len("Suivre"):]
        return command

    @property
    def query_param(self) -> str:
        return QUERY_PARAMS[self.kind]

    @property
    def query_value(self) -> str:
        """Value that re-selects this target on the gateway endpoints."""
        return self.command_argument
