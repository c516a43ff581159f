import logging
from typing import Any
from urllib.parse import quote

import httpx

from lanlearner.domain.constants import REQUEST_TIMEOUT
from lanlearner.domain.interfaces import DefinitionLookup
from lanlearner.domain.models import WordDefinition


class DictionaryApiLookup(DefinitionLookup):
    """Looks up headwords against a Free Dictionary API compatible endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def lookup(self, headword: str) -> WordDefinition:
        word = headword.strip()
        if not word:
            return WordDefinition(error="Empty headword")

        try:
            resp = await self._get_client().get(f"{self.base_url}/{quote(word)}")
        except httpx.HTTPError as e:
            self.logger.warning(f"Dictionary lookup for '{word}' failed: {e}")
            return WordDefinition(error=f"Lookup failed: {e}")

        if resp.status_code == 404:
            return WordDefinition(error=f"No definition found for '{word}'")
        if resp.status_code >= 400:
            self.logger.warning(f"Dictionary lookup for '{word}' returned {resp.status_code}")
            return WordDefinition(error=f"Lookup failed with status {resp.status_code}")

        try:
            return self._parse(resp.json())
        except (ValueError, KeyError, TypeError, IndexError) as e:
            self.logger.warning(f"Unexpected dictionary response for '{word}': {e}")
            return WordDefinition(error="Unexpected response from dictionary service")

    @staticmethod
    def _parse(data: Any) -> WordDefinition:
        # First meaning of the first entry; the example may come from any of its definitions
        meaning = data[0]["meanings"][0]
        definitions = meaning["definitions"]
        example = next((d["example"] for d in definitions if d.get("example")), "")
        return WordDefinition(
            definition=definitions[0]["definition"],
            part_of_speech=meaning.get("partOfSpeech", ""),
            example=example,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
