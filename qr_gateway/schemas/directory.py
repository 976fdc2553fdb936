"""
Directory Match Schemas

Normalized records returned by the JORFSearch directory.
Unknown fields are kept so callers can log or inspect them.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PersonMatch(BaseModel):
    """A person record. JORFSearch uses French keys (prenom, nom)."""
    model_config = ConfigDict(extra="allow")

    first_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("prenom", "first_name", "firstName"),
    )
    last_name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("nom", "last_name", "lastName"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class OrganisationMatch(BaseModel):
    """An organisation record keyed by its Wikidata id."""
    model_config = ConfigDict(extra="allow")

    id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("id", "wikidata_id", "wikidataId"),
    )
    name: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("name", "nom"),
    )


class TagMatch(BaseModel):
    """A publication carrying the requested function tag; only its existence matters."""
    model_config = ConfigDict(extra="allow")
