import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import urljoin

import requests

from ..exceptions import AuthenticationError, QueryError

# Set up logging
logger = logging.getLogger(__name__)

USER_AGENT = "glpi-notifier/0.1"

QueryParams = Sequence[Tuple[str, Union[str, int]]]


def create_headers(
    user_token: Optional[str] = None,
    app_token: Optional[str] = None,
    session_token: Optional[str] = None,
) -> Dict[str, str]:
    """
    Create HTTP headers for GLPI REST API requests.

    Args:
        user_token (Optional[str]): Personal API token, only sent to initSession.
        app_token (Optional[str]): Application token, sent on every call when configured.
        session_token (Optional[str]): Session token returned by initSession.

    Returns:
        Dict[str, str]: A dictionary containing the required HTTP headers.
    """
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
    }
    if user_token:
        headers["Authorization"] = f"user_token {user_token}"
    if session_token:
        headers["Session-Token"] = session_token
    if app_token:
        headers["App-Token"] = app_token
    return headers


class GlpiAPI:
    """
    Base class for interacting with the GLPI REST API.

    Owns the session lifecycle: a session token is obtained lazily through
    initSession the first time a request needs one, and is dropped as soon
    as any request fails so the next call authenticates again.

    Attributes:
        base_url (str): The apirest.php endpoint, possibly rewritten by a redirect.
        app_token (Optional[str]): Application token for the GLPI API client.
        session_token (Optional[str]): Current session token, None when not authenticated.
        timeout (float): Timeout in seconds applied to every HTTP call.
    """

    def __init__(
        self,
        base_url: str,
        user_token: str,
        app_token: Optional[str] = None,
        verify_ssl: bool = True,
        timeout: float = 30,
        http: Optional[requests.Session] = None,
    ):
        """
        Initialize the GLPI API client.

        Args:
            base_url (str): The base URL of the GLPI REST API (…/apirest.php).
            user_token (str): Long-lived personal API token.
            app_token (Optional[str]): Optional application token.
            verify_ssl (bool): Whether TLS certificates are verified.
            timeout (float): Timeout in seconds for each request.
            http (Optional[requests.Session]): Session to use, mostly for tests.
        """
        self.base_url = base_url.strip().rstrip("/")
        self.user_token = user_token
        self.app_token = app_token
        self.timeout = timeout
        self.session_token: Optional[str] = None

        self.http = http if http is not None else requests.Session()
        self.http.verify = verify_ssl

    def authenticate(self) -> str:
        """
        Open a session with initSession.

        Follows at most one redirect by rewriting base_url to the redirect
        target and calling initSession once more against it.

        Returns:
            str: The new session token.

        Raises:
            AuthenticationError: On network errors, a second redirect, any
                non-success status or a response without session_token.
        """
        headers = create_headers(user_token=self.user_token, app_token=self.app_token)
        url = f"{self.base_url}/initSession"
        response = self._send_init_session(url, headers)

        if self._is_redirect(response):
            self.base_url = self._rebase(url, response.headers["Location"])
            logger.info(f"initSession redirected, using base URL {self.base_url}")
            response = self._send_init_session(f"{self.base_url}/initSession", headers)

        if not 200 <= response.status_code < 300:
            body = response.text or ""
            raise AuthenticationError(
                f"initSession failed: {response.status_code} | body: {body}",
                status_code=response.status_code,
                body=body,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AuthenticationError(
                f"initSession returned invalid JSON: {e}",
                status_code=response.status_code,
                body=response.text or "",
            ) from e

        token = data.get("session_token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError(
                "initSession response is missing session_token",
                status_code=response.status_code,
                body=response.text or "",
            )

        self.session_token = str(token)
        logger.debug("GLPI session opened")
        return self.session_token

    def end_session(self) -> None:
        """
        Close the current session with killSession.

        Cleanup only: errors are logged and never raised, and the local
        token is always cleared.
        """
        if self.session_token is None:
            return

        url = f"{self.base_url}/killSession"
        try:
            self.http.get(url, headers=self._session_headers(), timeout=self.timeout)
            logger.debug("GLPI session closed")
        except Exception as e:
            logger.debug(f"killSession failed (ignored): {str(e)}")
        finally:
            self.session_token = None

    def invalidate_session(self) -> None:
        """Forget the session token locally so the next request re-authenticates."""
        self.session_token = None

    def ensure_session(self) -> None:
        if self.session_token is None:
            self.authenticate()

    def get(self, url_suffix: str, params: Optional[QueryParams] = None) -> Any:
        """
        Perform an authenticated GET request against the GLPI API.

        Args:
            url_suffix (str): The API endpoint path to append to the base URL.
            params (Optional[QueryParams]): Query string parameters, in order.

        Returns:
            Any: The decoded JSON response.

        Raises:
            AuthenticationError: If a session had to be opened and that failed.
            QueryError: On network errors, non-success status or invalid JSON.
        """
        self.ensure_session()
        url = f"{self.base_url}/{url_suffix}"

        try:
            response = self.http.get(
                url,
                headers=self._session_headers(),
                params=list(params) if params else None,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self.invalidate_session()
            raise QueryError(f"{url_suffix} failed: {str(e)}") from e

        return self._handle_response(response, url_suffix)

    def _handle_response(self, response: requests.Response, url_suffix: str) -> Union[Dict[str, Any], List[Any]]:
        """
        Handle the HTTP response from the GLPI API.

        Args:
            response (requests.Response): The HTTP response object.
            url_suffix (str): Endpoint name, used in error messages.

        Returns:
            Union[Dict[str, Any], List[Any]]: The JSON response.
        """
        if not 200 <= response.status_code < 300:
            self.invalidate_session()
            body = response.text or ""
            logger.error(f"Request failed: {response.status_code}")
            logger.debug(f"Response text: {body}")
            raise QueryError(
                f"{url_suffix} failed: {response.status_code} | body: {body}",
                status_code=response.status_code,
                body=body,
            )

        logger.debug(f"{response.status_code} | {url_suffix}")
        try:
            return response.json()
        except ValueError as e:
            self.invalidate_session()
            raise QueryError(
                f"{url_suffix} returned invalid JSON: {str(e)}",
                status_code=response.status_code,
                body=response.text or "",
            ) from e

    def _send_init_session(self, url: str, headers: Dict[str, str]) -> requests.Response:
        try:
            return self.http.get(url, headers=headers, timeout=self.timeout, allow_redirects=False)
        except requests.RequestException as e:
            raise AuthenticationError(f"initSession request failed: {str(e)}") from e

    def _session_headers(self) -> Dict[str, str]:
        return create_headers(app_token=self.app_token, session_token=self.session_token)

    @staticmethod
    def _is_redirect(response: requests.Response) -> bool:
        return 300 <= response.status_code < 400 and bool(response.headers.get("Location"))

    @staticmethod
    def _rebase(request_url: str, location: str) -> str:
        """Turn a redirect Location for initSession into a new API base URL."""
        target = urljoin(request_url, location).rstrip("/")
        if target.endswith("/initSession"):
            target = target[: -len("/initSession")]
        return target.rstrip("/")
