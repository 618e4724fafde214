"""Async HTTP client for the Ulasis API.

Every call returns an envelope instead of raising:
`{"success": True, "data": ...}` or `{"success": False, "error": ...}`.
Non-2xx responses and transport failures both end up as errors.
"""
import logging
from typing import Any, Optional

import httpx

from ulasis.app.core.config import settings

logger = logging.getLogger(__name__)


class UlasisClient:
    def __init__(
        self,
        base_url: str = settings.BASE_URL,
        token: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @staticmethod
    def _error_of(resp: httpx.Response) -> str:
        try:
            detail = resp.json().get("detail")
        except ValueError:
            detail = None
        if isinstance(detail, list):
            # pydantic validation errors
            detail = "; ".join(str(item.get("msg", item)) for item in detail)
        return detail or f"HTTP {resp.status_code}"

    async def request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        url = f"{self.base_url}{settings.API_PREFIX}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            return {"success": False, "error": str(e) or e.__class__.__name__}

        if resp.status_code >= 400:
            return {"success": False, "error": self._error_of(resp), "status_code": resp.status_code}
        if resp.status_code == 204 or not resp.content:
            return {"success": True, "data": None}
        if resp.headers.get("content-type", "").startswith("application/json"):
            return {"success": True, "data": resp.json()}
        return {"success": True, "data": resp.content}

    # auth

    async def register(self, email: str, password: str, first_name: str, **extra) -> dict:
        return await self.request(
            "POST", "/auth/register",
            json={"email": email, "password": password, "first_name": first_name, **extra},
        )

    async def login(self, email: str, password: str) -> dict:
        """Log in and keep the token for the following calls."""
        result = await self.request("POST", "/auth/token", json={"email": email, "password": password})
        if result["success"]:
            self.token = result["data"]["access_token"]
        return result

    async def me(self) -> dict:
        return await self.request("GET", "/auth/me")

    # questionnaires

    async def list_questionnaires(self, page: int = 1, limit: int = 10, **filters) -> dict:
        params = {"page": page, "limit": limit, **{k: v for k, v in filters.items() if v is not None}}
        return await self.request("GET", "/questionnaires", params=params)

    async def get_questionnaire(self, questionnaire_id: int) -> dict:
        return await self.request("GET", f"/questionnaires/{questionnaire_id}")

    async def create_questionnaire(self, data: dict) -> dict:
        return await self.request("POST", "/questionnaires", json=data)

    async def update_questionnaire(self, questionnaire_id: int, data: dict) -> dict:
        return await self.request("PUT", f"/questionnaires/{questionnaire_id}", json=data)

    async def delete_questionnaire(self, questionnaire_id: int) -> dict:
        return await self.request("DELETE", f"/questionnaires/{questionnaire_id}")

    async def get_quota(self) -> dict:
        return await self.request("GET", "/questionnaires/quota")

    # QR codes

    async def list_qr_codes(self, **filters) -> dict:
        return await self.request("GET", "/qr-codes", params={k: v for k, v in filters.items() if v is not None})

    async def create_qr_code(self, questionnaire_id: int, **options) -> dict:
        return await self.request("POST", "/qr-codes", json={"questionnaire_id": questionnaire_id, **options})

    async def create_qr_codes_batch(self, questionnaire_id: int, locations: list[str], **options) -> dict:
        return await self.request(
            "POST", "/qr-codes/batch",
            json={"questionnaire_id": questionnaire_id, "locations": locations, **options},
        )

    async def update_qr_code(self, qr_code_id: int, data: dict) -> dict:
        return await self.request("PUT", f"/qr-codes/{qr_code_id}", json=data)

    async def delete_qr_code(self, qr_code_id: int) -> dict:
        return await self.request("DELETE", f"/qr-codes/{qr_code_id}")

    async def get_scan_statistics(self, questionnaire_id: Optional[int] = None) -> dict:
        params = {"questionnaire_id": questionnaire_id} if questionnaire_id is not None else None
        return await self.request("GET", "/qr-codes/statistics", params=params)

    async def track_scan(self, qr_code_id: int) -> dict:
        return await self.request("POST", f"/qr-codes/{qr_code_id}/scan")

    # reviews

    async def submit_review(self, questionnaire_id: int, rating: int, comment: Optional[str] = None, **extra) -> dict:
        return await self.request(
            "POST", f"/public/questionnaires/{questionnaire_id}/reviews",
            json={"rating": rating, "comment": comment, **extra},
        )

    async def list_reviews(self, page: int = 1, limit: int = 20, **filters) -> dict:
        params = {"page": page, "limit": limit, **{k: v for k, v in filters.items() if v is not None}}
        return await self.request("GET", "/reviews", params=params)

    async def update_review(self, review_id: int, status: Optional[str] = None, tags: Optional[list[str]] = None) -> dict:
        payload = {k: v for k, v in {"status": status, "tags": tags}.items() if v is not None}
        return await self.request("PATCH", f"/reviews/{review_id}", json=payload)

    # analytics

    async def get_dashboard(self, range_: str = "week") -> dict:
        return await self.request("GET", "/analytics/dashboard", params={"range": range_})

    async def get_demo_dashboard(self, plan: str = "bisnis", range_: str = "month") -> dict:
        return await self.request("GET", "/analytics/demo", params={"plan": plan, "range": range_})

    async def get_subscription_status(self) -> dict:
        return await self.request("GET", "/subscription/status")

    async def export_data(self, format: str = "json") -> dict:
        return await self.request("GET", "/export", params={"format": format})

    async def get_qr_code_analytics(self, qr_code_id: int) -> dict:
        return await self.request("GET", f"/qr-codes/{qr_code_id}/analytics")

    async def get_top_locations(self, limit: int = 10) -> dict:
        return await self.request("GET", "/qr-codes/locations/top", params={"limit": limit})

    async def get_location_performance(self, location_tag: str) -> dict:
        return await self.request("GET", f"/qr-codes/locations/{location_tag}")
