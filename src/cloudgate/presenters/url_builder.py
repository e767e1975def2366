"""Hyperlink construction for presented resources."""

from urllib.parse import urlencode

from cloudgate.config import settings


class ApiUrlBuilder:
    """Builds absolute API URLs from paths. Pure string templating."""

    def __init__(self, base_url: str | None = None):
        self.base_url = (base_url or settings.external_url).rstrip("/")

    def build_url(self, path: str = "", query: dict[str, str] | None = None) -> str:
        """Return ``base_url + path`` with an optional encoded query string."""
        if path and not path.startswith("/"):
            path = f"/{path}"
        url = f"{self.base_url}{path}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url
