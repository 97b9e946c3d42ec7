"""
orbit_sync/connectors/orbit_connector.py

Orbit connector for workspace organization analytics.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import requests

from orbit_sync.config import OrbitSettings
from orbit_sync.connectors.base import BaseConnector, DecodeError
from orbit_sync.domain.organization import (
    ZERO_TIMESTAMP,
    PaginationLinks,
    SourceOrganization,
    SourcePage,
)
from orbit_sync.schemas.task_parameters import TaskParameters

logger = logging.getLogger(__name__)

# Query parameters in the order they appear in the request URL.
QUERY_PARAMETERS: tuple[str, ...] = ("direction", "items", "sort_string")


def build_query_string(*, direction: str = "", items: str = "", sort_string: str = "") -> str:
    """
    Join the non-empty filters as ``name=value`` pairs in fixed order.
    """

    values = {"direction": direction, "items": items, "sort_string": sort_string}
    return "&".join(f"{name}={values[name]}" for name in QUERY_PARAMETERS if values[name])


class OrbitConnector(BaseConnector):
    """
    Connector for reading one page of organizations from an Orbit workspace.
    """

    def __init__(
        self,
        *,
        settings: OrbitSettings,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            source="orbit",
            timeout_seconds=settings.timeout_seconds,
            verify_tls=settings.verify_tls,
            follow_redirects=settings.follow_redirects,
            session=session,
        )
        self._settings = settings

    def build_organizations_url(self, params: TaskParameters) -> str:
        query = build_query_string(
            direction=params.direction,
            items=params.items,
            sort_string=params.sort_string,
        )
        return f"{self._settings.base_url.rstrip('/')}/{params.workplace_slug}/organizations?{query}"

    def fetch_organizations(self, params: TaskParameters) -> SourcePage:
        """
        Fetch the first page of organizations for the invocation's workspace.
        """

        return self._fetch_page(self.build_organizations_url(params), params.source_token)

    def fetch_all_organizations(self, params: TaskParameters, *, max_pages: int) -> SourcePage:
        """
        Fetch organizations following ``links.next`` for at most ``max_pages`` pages.

        The returned page carries the links of the last page fetched.
        """

        organizations: list[SourceOrganization] = []
        seen_urls: set[str] = set()
        url: str | None = self.build_organizations_url(params)
        page = SourcePage()
        pages_fetched = 0

        while url and url not in seen_urls and pages_fetched < max_pages:
            seen_urls.add(url)
            page = self._fetch_page(url, params.source_token)
            organizations.extend(page.organizations)
            pages_fetched += 1
            url = page.links.next

        if url and pages_fetched >= max_pages:
            logger.warning(
                "Orbit pagination stopped at page limit workplace=%s max_pages=%s",
                params.workplace_slug,
                max_pages,
            )
        return SourcePage(organizations=tuple(organizations), links=page.links)

    def _fetch_page(self, url: str, token: str) -> SourcePage:
        logger.info("Fetching Orbit organizations url=%s", url)
        response = self._request(
            method="GET",
            url=url,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {token}",
            },
        )
        if not response.ok:
            logger.warning(
                "Orbit responded with non-success status=%s url=%s",
                response.status_code,
                url,
            )
        return self.parse_page(self._decode_json(response))

    def parse_page(self, payload: Any) -> SourcePage:
        """
        Decode an organizations response body into a ``SourcePage``.
        """

        if not isinstance(payload, dict):
            raise DecodeError(f"{self.source}: expected a JSON object response.", source=self.source)

        data = payload.get("data")
        if data is None:
            data = []
        if not isinstance(data, list):
            raise DecodeError(f"{self.source}: 'data' must be a list.", source=self.source)

        organizations = tuple(self._parse_organization(index, item) for index, item in enumerate(data))
        return SourcePage(organizations=organizations, links=self._parse_links(payload.get("links")))

    def _parse_organization(self, index: int, item: Any) -> SourceOrganization:
        if item is None:
            return SourceOrganization()
        if not isinstance(item, dict):
            raise DecodeError(f"{self.source}: data[{index}] is not an object.", source=self.source)

        attributes = item.get("attributes")
        if attributes is None:
            attributes = {}
        if not isinstance(attributes, dict):
            raise DecodeError(f"{self.source}: data[{index}].attributes is not an object.", source=self.source)

        return SourceOrganization(
            id=self._string_field(index, "id", item.get("id")),
            type=self._string_field(index, "type", item.get("type")),
            name=self._string_field(index, "name", attributes.get("name")),
            website=self._string_field(index, "website", attributes.get("website")),
            member_count=self._int_field(index, "members_count", attributes.get("members_count")),
            employee_count=self._int_field(index, "employees_count", attributes.get("employees_count")),
            last_active=self._timestamp_field(index, "last_active", attributes.get("last_active")),
            active_since=self._timestamp_field(index, "active_since", attributes.get("active_since")),
        )

    def _string_field(self, index: int, name: str, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise DecodeError(f"{self.source}: data[{index}].{name} is not a string.", source=self.source)
        return value

    def _int_field(self, index: int, name: str, value: Any) -> int:
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(f"{self.source}: data[{index}].{name} is not an integer.", source=self.source)
        return value

    def _timestamp_field(self, index: int, name: str, value: Any) -> datetime:
        if value is None:
            return ZERO_TIMESTAMP
        if not isinstance(value, str):
            raise DecodeError(f"{self.source}: data[{index}].{name} is not a timestamp.", source=self.source)
        try:
            return self.parse_iso_datetime(value)
        except ValueError as exc:
            raise DecodeError(
                f"{self.source}: data[{index}].{name} is not an ISO timestamp: {value!r}",
                source=self.source,
            ) from exc

    @staticmethod
    def _parse_links(links: Any) -> PaginationLinks:
        if not isinstance(links, dict):
            return PaginationLinks()

        def _link(key: str) -> str | None:
            value = links.get(key)
            return value if isinstance(value, str) and value else None

        return PaginationLinks(
            first=_link("first"),
            last=_link("last"),
            prev=_link("prev"),
            next=_link("next"),
        )
