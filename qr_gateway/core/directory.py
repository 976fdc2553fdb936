"""
Directory Client - JORFSearch lookups

Three lookups, each returning zero or more normalized matches in the
order the directory returned them:

    search_person(raw_name)                  -> [PersonMatch]
    search_organisation_by_external_id(id)   -> [OrganisationMatch]
    search_tag(tag)                          -> [TagMatch]

The client does not retry and does not paginate. Transport errors and
HTTP error statuses raise DirectoryUnavailable; an unexpected payload
shape counts as "no match".
"""

from typing import Any, List, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from ..errors import DirectoryUnavailable
from ..observability import get_logger
from ..schemas import OrganisationMatch, PersonMatch, TagMatch

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class DirectoryClient:
    """
    Async JORFSearch client.

    The httpx.AsyncClient is owned by the application lifespan and shared
    across requests; this class holds no per-request state.
    """

    PERSON_PATH = "/name/{value}"
    ORGANISATION_PATH = "/organisation/{value}"
    TAG_PATH = "/tag/{value}"

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def search_person(self, raw_name: str) -> List[PersonMatch]:
        name = " ".join(raw_name.split())
        records = await self._fetch(self.PERSON_PATH, name)
        return self._normalize(records, PersonMatch)

    async def search_organisation_by_external_id(self, external_id: str) -> List[OrganisationMatch]:
        records = await self._fetch(self.ORGANISATION_PATH, external_id)
        return self._normalize(records, OrganisationMatch)

    async def search_tag(self, tag: str) -> List[TagMatch]:
        records = await self._fetch(self.TAG_PATH, tag)
        return self._normalize(records, TagMatch)

    def url_for(self, path: str, value: str) -> str:
        return self._base_url + path.format(value=quote(value, safe=""))

    async def _fetch(self, path: str, value: str) -> List[Any]:
        url = self.url_for(path, value)
        try:
            response = await self._client.get(url, params={"format": "JSON"})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Directory returned an error status",
                url=url,
                status_code=e.response.status_code,
            )
            raise DirectoryUnavailable(f"Directory returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Directory unreachable", url=url, error=str(e))
            raise DirectoryUnavailable("Directory unreachable") from e
        except ValueError as e:
            logger.error("Directory returned invalid JSON", url=url, error=str(e))
            raise DirectoryUnavailable("Directory returned invalid JSON") from e

        if not isinstance(payload, list):
            logger.warning(
                "Directory payload is not a list, treating as no match",
                url=url,
                payload_type=type(payload).__name__,
            )
            return []

        logger.debug("Directory lookup", url=url, matches=len(payload))
        return payload

    @staticmethod
    def _normalize(records: List[Any], model: Type[M]) -> List[M]:
        matches: List[M] = []
        for record in records:
            if not isinstance(record, dict):
                continue
            try:
                matches.append(model.model_validate(record))
            except ValidationError as e:
                logger.debug(
                    "Skipping malformed directory record",
                    model=model.__name__,
                    error_count=e.error_count(),
                )
        return matches
