from __future__ import annotations

from urllib.parse import urlencode, urljoin, urlsplit


class GatewayClient:
    """Builds gateway URLs for a viewer served from another origin."""

    def __init__(self, base_url: str, api_prefix: str = "/api") -> None:
        parts = urlsplit(base_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Gateway base URL must be absolute: {base_url}")
        self.base_url = base_url
        self.api_prefix = api_prefix.rstrip("/")

    def _endpoint(self, name: str) -> str:
        return urljoin(self.base_url, f"{self.api_prefix}/{name}")

    def image_url(self, source_url: str) -> str:
        return f"{self._endpoint('image')}?{urlencode({'url': source_url})}"

    def html_image_url(self, page_url: str, selector: str | None = None) -> str:
        params = {"page": page_url}
        if selector:
            params["selector"] = selector
        return f"{self._endpoint('html-image')}?{urlencode(params)}"
