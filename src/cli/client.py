"""HTTP client for a running compound-eye server."""

from typing import Any

import httpx

DEFAULT_PORT = 4141
REQUEST_TIMEOUT = 30.0


class ServerUnavailableError(Exception):
    """Raised when the server cannot be reached."""

    def __init__(self, port: int):
        super().__init__(
            f"Could not connect to compound-eye on port {port}. Is the server running?"
        )
        self.port = port


class ApiError(Exception):
    """Raised when the server answers with an error status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class CompoundEyeClient:
    """Thin JSON client over the /api endpoints."""

    def __init__(self, port: int = DEFAULT_PORT, host: str = "localhost"):
        self.port = port
        self.base_url = f"http://{host}:{port}"

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        try:
            response = httpx.post(
                f"{self.base_url}{path}", json=payload, timeout=REQUEST_TIMEOUT
            )
        except httpx.TransportError as e:
            raise ServerUnavailableError(self.port) from e

        if response.is_error:
            try:
                message = response.json().get("error") or response.reason_phrase
            except ValueError:
                message = response.reason_phrase
            raise ApiError(response.status_code, message)
        return response.json()

    def add_observation(self, text: str, project: str, source: str = "human") -> dict:
        return self._post(
            "/api/observations", {"text": text, "project": project, "source": source}
        )

    def scan(self, path: str) -> list[str]:
        return self._post("/api/projects/scan", {"path": path})["candidates"]

    def register_projects(self, names: list[str]) -> list[dict]:
        return self._post("/api/projects", {"names": names})
