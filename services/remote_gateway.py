"""Remote Gateway

HTTP client for the travel agent backend. One request per call, no retries:
retry and fallback decisions belong to the ConnectivityDispatcher.

Endpoints:
    GET  /agent/info        connectivity probe
    POST /users             create profile
    GET  /users/{user_id}   fetch profile (404 -> NotFound)
    PUT  /users/{user_id}   server-side merge of a partial profile
    POST /chat              one chat turn
"""
import logging
from typing import Dict, Any, Optional

import requests

from config.settings import API_BASE_URL, REQUEST_TIMEOUT
from core.errors import RemoteUnavailable, NotFound
from models.profile import UserProfile, to_wire
from models.session import ChatTurnResponse

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class RemoteGateway:
    """Request/response wrapper around the backend REST API."""

    def __init__(self, base_url: str = API_BASE_URL, timeout: Optional[float] = REQUEST_TIMEOUT,
                 session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def ping(self) -> bool:
        """Connectivity probe. Diagnostic only; never raises."""
        url = f"{self.base_url}/agent/info"
        logger.info(f"Testing backend connection to: {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Backend connection failed: {e}")
            return False

        if response.ok:
            logger.info("Backend connection successful")
            return True
        logger.warning(f"Backend responded with error: {response.status_code}")
        return False

    # === Profiles ===

    def create_profile(self, name: str, email: str) -> UserProfile:
        body = {
            "basic_info": {
                "name": name,
                "email": email,
                "nationality": "",
                "home_location": "",
            }
        }
        data = self._request("POST", "/users", json_body=body)
        return self._profile_from(data)

    def fetch_profile(self, user_id: str) -> UserProfile:
        data = self._request("GET", f"/users/{user_id}", not_found_id=user_id)
        return self._profile_from(data)

    def update_profile(self, user_id: str, patch: Dict[str, Any]) -> UserProfile:
        data = self._request("PUT", f"/users/{user_id}", json_body=to_wire(patch), not_found_id=user_id)
        return self._profile_from(data)

    # === Chat ===

    def send_chat_turn(self, message: str, session_id: str, user_id: str = None) -> ChatTurnResponse:
        body = {"message": message, "session_id": session_id}
        if user_id:
            body["user_id"] = user_id
        data = self._request("POST", "/chat", json_body=body)
        return ChatTurnResponse.from_dict(data, session_id=session_id)

    # === Transport ===

    def _request(self, method: str, path: str, json_body: dict = None,
                 not_found_id: str = None) -> Any:
        """
        Perform one request and return the decoded JSON body.

        Raises:
            NotFound: 404 on a per-user resource.
            RemoteUnavailable: transport error, non-2xx status, non-JSON or
                undecodable body.
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"Making API call: {method} {url}")
        try:
            response = self.session.request(method, url, json=json_body, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteUnavailable(f"{method} {path} failed: {e}") from e

        if response.status_code == 404 and not_found_id is not None:
            raise NotFound(not_found_id)
        if not response.ok:
            raise RemoteUnavailable(f"HTTP error! status: {response.status_code}",
                                    status_code=response.status_code)

        content_type = response.headers.get("Content-Type", "")
        if JSON_CONTENT_TYPE not in content_type.lower():
            raise RemoteUnavailable(f"{method} {path} returned non-JSON content ({content_type or 'none'})",
                                    status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailable(f"{method} {path} returned malformed JSON: {e}",
                                    status_code=response.status_code) from e

    @staticmethod
    def _profile_from(data: Any) -> UserProfile:
        if not isinstance(data, dict) or not isinstance(data.get("profile"), dict):
            raise RemoteUnavailable("response body has no 'profile' object")
        try:
            return UserProfile.from_dict(data["profile"])
        except (TypeError, ValueError) as e:
            raise RemoteUnavailable(f"malformed profile in response: {e}") from e
