"""Pass-through proxy for the FlavorDB and RecipeDB upstreams."""

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS, PUT, DELETE",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

INVALID_ENDPOINT_MESSAGE = "Invalid endpoint. Try /flavordb/... or /recipedb/..."


@dataclass
class ProxyResponse:
    """What the proxy route sends back to the caller."""
    status_code: int
    content: bytes
    media_type: str = "application/json"
    headers: Dict[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))


class ApiProxy:
    """Rewrites /flavordb and /recipedb paths onto their upstream base URLs."""

    def __init__(
        self,
        flavordb_base: str,
        recipedb_base: str,
        api_key: str = "",
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        self.routes = {
            "/flavordb": flavordb_base,
            "/recipedb": recipedb_base,
        }
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def resolve_target(self, path: str) -> Optional[str]:
        """Map a proxy path to its upstream URL, or None when unmatched."""
        if path and not path.startswith("/"):
            path = "/" + path
        for prefix, base in self.routes.items():
            if path.startswith(prefix):
                return base + path[len(prefix):]
        return None

    def forward(self, path: str, query: str = "") -> ProxyResponse:
        """Forward a GET to the upstream and relay its status and body."""
        target_url = self.resolve_target(path)
        if target_url is None:
            return ProxyResponse(
                status_code=404,
                content=INVALID_ENDPOINT_MESSAGE.encode("utf-8"),
                media_type="text/plain",
                headers={}
            )

        if query:
            target_url = f"{target_url}?{query}"
        logger.info(f"Proxying to: {target_url}")

        try:
            response = self._session.get(
                target_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                },
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Proxy error: {e}")
            body = {"error": "Failed to fetch from upstream", "details": str(e)}
            return ProxyResponse(status_code=502, content=json.dumps(body).encode("utf-8"))

        logger.info(f"Upstream response status: {response.status_code}")
        return ProxyResponse(status_code=response.status_code, content=response.content)
