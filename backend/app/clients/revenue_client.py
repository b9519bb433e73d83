"""HTTP client for the revenue endpoints, backed by the advisory DataManager cache."""

import logging
from datetime import date
from typing import Optional

import httpx

from backend.app.clients.data_manager import DataManager

logger = logging.getLogger(__name__)

REVENUE_CACHE_DURATION = 60
EXPORT_CACHE_DURATION = 2 * 60


class RevenueClientError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class RevenueClient:
    def __init__(
        self,
        http_client: httpx.Client,
        token: Optional[str] = None,
        data_manager: Optional[DataManager] = None,
    ):
        self.http = http_client
        self.token = token
        self.data_manager = data_manager or DataManager()

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _get_json(self, path: str, params: dict) -> dict:
        response = self.http.get(path, params=params, headers=self._headers())
        if response.status_code >= 400:
            raise RevenueClientError(response.status_code, f"Failed to fetch {path}: {response.status_code}")
        return response.json()

    def get_revenue(
        self,
        tutor_id: int,
        start_date: date,
        end_date: date,
        student_id: Optional[int] = None,
        range_: str = "day",
        force_refresh: bool = False,
    ) -> dict:
        key = f"revenue:{tutor_id}:{start_date.isoformat()}:{end_date.isoformat()}:{student_id or 'all'}:{range_}"
        params = {
            "tutorId": tutor_id,
            "range": range_,
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
        }
        if student_id is not None:
            params["studentId"] = student_id
        return self.data_manager.fetch_with_cache(
            key,
            lambda: self._get_json("/revenue", params),
            force_refresh=force_refresh,
            cache_duration=REVENUE_CACHE_DURATION,
        )

    def get_export(
        self,
        tutor_id: int,
        start_date: date,
        end_date: date,
        student_id: Optional[int] = None,
        force_refresh: bool = False,
    ) -> dict:
        key = f"export:{tutor_id}:{start_date.isoformat()}:{end_date.isoformat()}:{student_id or 'all'}"
        params = {"tutorId": tutor_id, "startDate": start_date.isoformat(), "endDate": end_date.isoformat()}
        if student_id is not None:
            params["studentId"] = student_id
        return self.data_manager.fetch_with_cache(
            key,
            lambda: self._get_json("/revenue/export", params),
            force_refresh=force_refresh,
            cache_duration=EXPORT_CACHE_DURATION,
        )

    def generate_pdf(
        self,
        tutor_id: int,
        start_date: date,
        end_date: date,
        student_id: Optional[int] = None,
    ) -> dict:
        """Request a PDF report; documents are never cached."""
        body = {"tutorId": tutor_id, "startDate": start_date.isoformat(), "endDate": end_date.isoformat()}
        if student_id is not None:
            body["studentId"] = student_id
        response = self.http.post("/revenue/generate-pdf", json=body, headers=self._headers())
        if response.status_code >= 400:
            logger.warning("PDF generation refused with status %s", response.status_code)
            raise RevenueClientError(response.status_code, f"PDF generation failed: {response.status_code}")
        return response.json()

    def invalidate_revenue(self, tutor_id: Optional[int] = None) -> None:
        if tutor_id is None:
            self.data_manager.invalidate("revenue:")
            self.data_manager.invalidate("export:")
            return
        self.data_manager.invalidate(f"revenue:{tutor_id}:")
        self.data_manager.invalidate(f"export:{tutor_id}:")
