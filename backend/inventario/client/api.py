import logging
from typing import Any, Optional

import requests

from inventario.core.config import API_BASE_URL, API_TIMEOUT_SECONDS
from inventario.core.errors import BackendError, error_for_status

logger = logging.getLogger(__name__)


class ApiClient:
    """Cliente HTTP fino para a API; traduz falhas para os erros de dominio.

    ``session`` aceita qualquer objeto com ``request(method, url, **kwargs)``
    no formato do ``requests.Session`` (por exemplo o ``TestClient`` do FastAPI).
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        session: Optional[Any] = None,
        timeout: float = API_TIMEOUT_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.token: Optional[str] = None

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Falha de rede em %s %s: %s", method, url, exc)
            raise BackendError(f"API indisponivel: {exc}") from exc

        if response.status_code >= 400:
            raise self._error_from(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_from(response) -> Exception:
        try:
            payload = response.json() or {}
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        detail = payload.get("detail")
        message = detail if isinstance(detail, str) and detail else "Dados invalidos."
        return error_for_status(
            response.status_code,
            message,
            payload.get("errors"),
            code=payload.get("code"),
        )

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Optional[Any] = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Optional[Any] = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)
