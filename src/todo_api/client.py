"""
HTTP client and view state for the todo API.

`TodoApiClient` maps the five endpoints onto httpx calls. `TodoBoard` keeps
the list a user is looking at in sync with the server: it mirrors the last
successful fetch and applies the server's answer after each mutation.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3000"

Todo = Dict[str, Any]


class ApiError(Exception):
    """Non-success response from the todo API."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("message") or body.get("error") or body)
    return str(body)


# PUBLIC_INTERFACE
class TodoApiClient:
    """
    Thin wrapper over the REST endpoints.

    Pass `http_client` to reuse an existing httpx.Client (tests hand in a
    FastAPI TestClient); otherwise one is created for `base_url`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(base_url=self.base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "TodoApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = self._http.request(method, path, **kwargs)
        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))
        return response

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/api/health").json()

    def list_todos(self) -> List[Todo]:
        return self._request("GET", "/api/todos").json()

    def create_todo(self, title: str, description: Optional[str] = None) -> Todo:
        payload = {"title": title, "description": description}
        return self._request("POST", "/api/todos", json=payload).json()

    def replace_todo(self, todo_id: int, title: str, description: Optional[str], completed: bool) -> Todo:
        payload = {"title": title, "description": description, "completed": completed}
        return self._request("PUT", f"/api/todos/{todo_id}", json=payload).json()

    def delete_todo(self, todo_id: int) -> None:
        self._request("DELETE", f"/api/todos/{todo_id}")


# Transport errors, API errors and undecodable bodies.
_FAILURES = (httpx.HTTPError, ApiError, ValueError)


def _log_notification(message: str) -> None:
    logger.warning(message)


# PUBLIC_INTERFACE
class TodoBoard:
    """
    Local view of the todo collection.

    - `todos`: list as of the last successful fetch, newest first
    - `error`: message for the error panel, or None
    - `loading`: True until the first load attempt finishes

    `notify` is the blocking user notification (an alert in a browser); it is
    called for validation hints, successes and every mutation failure.
    `confirm` gates deletions.
    """

    def __init__(
        self,
        api: TodoApiClient,
        notify: Callable[[str], None] = _log_notification,
        confirm: Callable[[str], bool] = lambda _message: True,
    ) -> None:
        self.api = api
        self.notify = notify
        self.confirm = confirm
        self.todos: List[Todo] = []
        self.error: Optional[str] = None
        self.loading = True

    def load(self) -> bool:
        """
        Check the backend is reachable, then fetch the list.

        A failed reachability check leaves an error and stops; call `load()`
        again to retry.
        """
        self.loading = True
        try:
            self.api.health()
        except _FAILURES as exc:
            logger.error("Backend unreachable at %s: %s", self.api.base_url, exc)
            self.error = f"Cannot reach the backend. Check that it is running at {self.api.base_url}"
            self.loading = False
            return False
        return self.refresh()

    def refresh(self) -> bool:
        self.loading = True
        try:
            self.todos = self.api.list_todos()
            self.error = None
            return True
        except _FAILURES as exc:
            logger.error("Failed to fetch todos: %s", exc)
            self.error = str(exc)
            return False
        finally:
            self.loading = False

    def find(self, todo_id: int) -> Optional[Todo]:
        return next((t for t in self.todos if t["id"] == todo_id), None)

    def add(self, title: str, description: str = "") -> Optional[Todo]:
        if not title.strip():
            self.notify("Please enter a title")
            return None
        try:
            created = self.api.create_todo(title.strip(), description.strip() or None)
        except _FAILURES as exc:
            self.notify(f"Error: {exc}")
            return None
        self.todos = [created, *self.todos]
        self.notify("Todo created")
        return created

    def toggle(self, todo_id: int) -> Optional[Todo]:
        todo = self.find(todo_id)
        if todo is None:
            return None
        try:
            updated = self.api.replace_todo(
                todo_id, todo["title"], todo.get("description"), not todo["completed"]
            )
        except _FAILURES as exc:
            self.notify(f"Error: {exc}")
            return None
        self.todos = [updated if t["id"] == todo_id else t for t in self.todos]
        return updated

    def remove(self, todo_id: int) -> bool:
        if not self.confirm("Delete this todo?"):
            return False
        try:
            self.api.delete_todo(todo_id)
        except _FAILURES as exc:
            self.notify(f"Error: {exc}")
            return False
        self.todos = [t for t in self.todos if t["id"] != todo_id]
        self.notify("Todo deleted")
        return True
