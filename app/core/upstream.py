"""Best-effort clients for the RecipeDB and FlavorDB upstream databases."""

import logging
from typing import Any, Dict, Optional

import requests

from config.settings import UPSTREAM_PATHS

logger = logging.getLogger(__name__)


class FoodDatabaseClient:
    """Queries the upstream databases through the API proxy.

    Every lookup returns ``None`` instead of raising, so one failing source
    never blocks the other.
    """

    def __init__(
        self,
        proxy_endpoint: str,
        auth_token: str = "",
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.proxy_endpoint = proxy_endpoint.rstrip("/")
        self.auth_token = auth_token
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get_json(self, path: str, params: Dict[str, str], source: str) -> Optional[Any]:
        url = f"{self.proxy_endpoint}{path}"
        logger.info(f"Searching {source} proxy: {url} {params}")
        try:
            response = self._session.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self.auth_token}"},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"{source} search failed: {e}")
            return None

        if not response.ok:
            logger.warning(f"{source} search failed: {response.status_code}")
            return None

        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{source} returned invalid JSON: {e}")
            return None

    def search_recipe(self, dish_name: str) -> Optional[Dict[str, Any]]:
        """Return the first RecipeDB hit for a dish, if any."""
        data = self._get_json(UPSTREAM_PATHS["recipe_search"], {"q": dish_name}, "RecipeDB")
        if data is None:
            return None

        recipes = data
        if isinstance(data, dict):
            payload = data.get("payload")
            if isinstance(payload, dict) and payload.get("data"):
                recipes = payload["data"]

        if isinstance(recipes, list) and recipes and isinstance(recipes[0], dict):
            return recipes[0]
        return None

    def lookup_flavor(self, dish_name: str) -> Optional[Dict[str, Any]]:
        """Return the FlavorDB entity whose readable alias matches the dish."""
        data = self._get_json(UPSTREAM_PATHS["flavor_lookup"], {"alias": dish_name}, "FlavorDB")
        if not isinstance(data, dict):
            return None
        logger.info(f"FlavorDB data found for {dish_name!r}")
        return data
