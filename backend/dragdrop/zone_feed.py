from typing import List

import httpx

from mapgrid.entity import GridEntity


async def fetch_zone_entities(http: httpx.AsyncClient, zone: str) -> List[GridEntity]:
    """Load the placed establishments of a zone from the API.

    Raises `httpx.HTTPStatusError` on a non-2xx answer; the caller decides
    whether to keep showing the previous list.
    """
    response = await http.get(f"/api/zones/{zone}/establishments")
    response.raise_for_status()
    return [GridEntity.from_api(item) for item in response.json()["items"]]
