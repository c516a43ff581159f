import logging
from typing import Any

import httpx

from lanlearner.application.page_export import table_of_contents_block
from lanlearner.domain.constants import PAGE_EXPORT_CHUNK_SIZE, REQUEST_TIMEOUT
from lanlearner.domain.interfaces import PageExporter


class PageExportError(Exception):
    pass


class PageExportClient(PageExporter):
    """
    Publishes block structures through the page-export proxy.

    The proxy owns credentials and the parent page; this client only sends
    ``POST /pages`` with the first chunk and ``PATCH /blocks/{id}/children``
    for the rest.
    """

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

    async def _request(self, method: str, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._get_client().request(method, f"{self.base_url}{endpoint}", json=body)
        except httpx.HTTPError as e:
            self.logger.error(f"Page export request failed: {e}")
            raise PageExportError(f"Page export request failed: {e}") from e

        if resp.status_code >= 400:
            try:
                detail = resp.json().get("message", "Unknown error")
            except ValueError:
                detail = "Failed to parse error response from proxy."
            self.logger.error(f"Page export proxy returned {resp.status_code}: {detail}")
            raise PageExportError(f"Request via proxy failed: {resp.status_code}. Message: {detail}")
        return resp.json()

    async def append_blocks(self, page_id: str, blocks: list[dict[str, Any]]) -> None:
        if not blocks:
            return
        await self._request("PATCH", f"/blocks/{page_id}/children", {"children": blocks})

    async def create_page(self, title: str, blocks: list[dict[str, Any]]) -> dict[str, str]:
        all_blocks = [table_of_contents_block(), *blocks]
        chunks = [
            all_blocks[i : i + PAGE_EXPORT_CHUNK_SIZE]
            for i in range(0, len(all_blocks), PAGE_EXPORT_CHUNK_SIZE)
        ]

        page = await self._request("POST", "/pages", {"title": title, "children": chunks[0]})
        page_id = page["id"]
        for chunk in chunks[1:]:
            await self.append_blocks(page_id, chunk)

        self.logger.info(f"Exported page '{title}' with {len(all_blocks)} blocks")
        return {"id": page_id, "url": page.get("url", "")}

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
