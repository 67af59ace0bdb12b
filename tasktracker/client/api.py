"""HTTP client for the reminder endpoints."""

import logging

import httpx

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class ReminderApiError(Exception):
    """A request to the task tracker API failed."""


class ReminderApiClient:
    """Thin synchronous wrapper over the task tracker API.

    Every failure, transport or HTTP status, surfaces as ``ReminderApiError``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: str | None = None,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self._client = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_client = http_client is None
        self.token = token

    def __enter__(self) -> "ReminderApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._client.request(
                method, f"{API_PREFIX}{path}", headers=headers, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ReminderApiError(
                f"{method} {path} failed with {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise ReminderApiError(f"{method} {path} failed: {e}") from e
        return response.json()

    def login(self, email: str, password: str) -> dict:
        """Log in and keep the access token for later requests."""
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        return data["user"]

    def list_tasks(self) -> list[dict]:
        return self._request("GET", "/tasks")

    def fired_reminders(self) -> list[dict]:
        """Reminders the server has fired and the client has not handled yet."""
        return self._request("GET", "/tasks/fired-reminders")

    def pending_reminders(self) -> list[dict]:
        return self._request("GET", "/tasks/pending-reminders")

    def reminder_progress(
        self, task_id: int, stopped: bool = False, snooze_minutes: float | None = None
    ) -> dict:
        """Report that a ring ended, was stopped, or was snoozed."""
        payload: dict = {"stopped": stopped}
        if snooze_minutes is not None:
            payload["snooze_minutes"] = snooze_minutes
        return self._request("POST", f"/tasks/{task_id}/reminder-progress", json=payload)

    def reminder_triggered(self, task_id: int, reminder_index: int) -> dict:
        return self._request(
            "PUT", f"/tasks/{task_id}/reminder-triggered", json={"reminder_index": reminder_index}
        )
