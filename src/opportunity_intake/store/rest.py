"""REST collaborators for a PostgREST-style CRM backend.

Opportunities, principal organizations and products are exposed as tables:
- POST/PATCH/GET /rest/v1/opportunities
- GET /rest/v1/organizations?is_principal=eq.true (with embedded product links)
- GET /rest/v1/products (with embedded product_principals)

One HTTP request per opportunity record; the caller owns retries.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

from opportunity_intake.models.catalog import Principal, Product
from opportunity_intake.models.draft import OpportunityPayload

from .base import CatalogDirectory, OpportunityRepository, PersistenceError

if TYPE_CHECKING:
    from opportunity_intake.config import IntakeSettings

logger = logging.getLogger(__name__)


class _RestClient:
    """Shared request plumbing: base URL, auth headers, error mapping."""

    DEFAULT_HEADERS = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": "opportunity-intake/0.1",
    }

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        if not base_url:
            raise ValueError("REST base URL is required (set rest_url or OPPORTUNITY_INTAKE_REST_URL)")
        self._base_url = base_url.rstrip("/")
        headers = dict(self.DEFAULT_HEADERS)
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._headers = headers
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self._base_url + path
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            resp = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise PersistenceError(f"{method} {path} failed: {e}") from e
        if resp.is_error:
            detail = _error_detail(resp)
            logger.warning("%s %s returned %d: %s", method, path, resp.status_code, detail)
            raise PersistenceError(f"{method} {path} returned {resp.status_code}: {detail}")
        if not resp.content:
            return None
        return resp.json()


def _error_detail(resp: httpx.Response) -> str:
    """Prefer PostgREST's JSON 'message' over the raw body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class RestOpportunityRepository(_RestClient, OpportunityRepository):
    """Persists opportunities through the REST API."""

    OPPORTUNITIES_PATH = "/rest/v1/opportunities"

    @classmethod
    def from_settings(cls, settings: "IntakeSettings", client: Optional[httpx.Client] = None) -> "RestOpportunityRepository":
        return cls(
            settings.rest_url or "",
            api_key=settings.rest_api_key,
            client=client,
            timeout=settings.rest_timeout,
        )

    @staticmethod
    def _row(payload: OpportunityPayload) -> dict:
        return payload.model_dump(mode="json", exclude_none=True)

    def create_opportunity(self, payload: OpportunityPayload) -> str:
        data = self._request(
            "POST",
            self.OPPORTUNITIES_PATH,
            json=self._row(payload),
            headers={"Prefer": "return=representation"},
        )
        row = data[0] if isinstance(data, list) and data else data
        if not isinstance(row, dict) or not row.get("id"):
            raise PersistenceError("Create returned no opportunity id")
        return str(row["id"])

    def update_opportunity(self, opportunity_id: str, payload: OpportunityPayload) -> None:
        data = self._request(
            "PATCH",
            self.OPPORTUNITIES_PATH,
            params={"id": f"eq.{opportunity_id}"},
            json=self._row(payload),
            headers={"Prefer": "return=representation"},
        )
        if isinstance(data, list) and not data:
            raise PersistenceError(f"Opportunity not found: {opportunity_id}")

    def name_exists(self, name: str) -> bool:
        data = self._request(
            "GET",
            self.OPPORTUNITIES_PATH,
            params={"select": "id", "name": f"eq.{name}", "deleted_at": "is.null", "limit": "1"},
        )
        return bool(data)


class RestCatalogDirectory(_RestClient, CatalogDirectory):
    """Reads principals and their products through the REST API."""

    ORGANIZATIONS_PATH = "/rest/v1/organizations"
    PRODUCTS_PATH = "/rest/v1/products"

    @classmethod
    def from_settings(cls, settings: "IntakeSettings", client: Optional[httpx.Client] = None) -> "RestCatalogDirectory":
        return cls(
            settings.rest_url or "",
            api_key=settings.rest_api_key,
            client=client,
            timeout=settings.rest_timeout,
        )

    def list_principals(self) -> list[Principal]:
        rows = self._request(
            "GET",
            self.ORGANIZATIONS_PATH,
            params={
                "select": "id,name,type,product_principals(product_id)",
                "is_principal": "eq.true",
                "deleted_at": "is.null",
                "order": "name.asc",
            },
        ) or []
        return [
            Principal(
                id=str(row["id"]),
                name=row.get("name") or "",
                organization_name=row.get("name"),
                organization_type=row.get("type"),
                product_ids=tuple(
                    str(link["product_id"]) for link in row.get("product_principals") or []
                ),
            )
            for row in rows
        ]

    def list_products_for_principals(self, principal_ids: list[str]) -> list[Product]:
        if not principal_ids:
            return []
        rows = self._request(
            "GET",
            self.PRODUCTS_PATH,
            params={
                "select": "id,name,category,is_active,product_principals!inner(principal_id)",
                "product_principals.principal_id": f"in.({','.join(principal_ids)})",
                "deleted_at": "is.null",
                "order": "name.asc",
            },
        ) or []
        return [
            Product(
                id=str(row["id"]),
                name=row.get("name") or "",
                category=row.get("category"),
                is_active=row.get("is_active", True) is not False,
                principal_ids=tuple(
                    str(link["principal_id"]) for link in row.get("product_principals") or []
                ),
            )
            for row in rows
        ]
