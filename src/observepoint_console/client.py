"""
ObservePoint API Client
Handles communication with the ObservePoint REST API (web journeys, actions,
runs and rules).
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from .config import ClientConfig, get_client_config
from .models import Rule, WebJourney, WebJourneyAction, WebJourneyRun
from .storage import API_KEY_STORAGE_KEY, LocalStorage, MemoryStorage
from .utils import mask_api_key

logger = logging.getLogger(__name__)

INVALID_API_KEY_MESSAGE = 'Invalid API key. Please check your ObservePoint API key in Settings.'

Payload = Union[Dict[str, Any], WebJourney, WebJourneyAction, Rule]


class ObservePointAPIError(Exception):
    """Exception raised for error responses from the ObservePoint API"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 payload: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class InvalidApiKeyError(ObservePointAPIError):
    """The API answered 401: the configured key is missing or wrong"""

    def __init__(self, message: str = INVALID_API_KEY_MESSAGE):
        super().__init__(message, status_code=401)


def _payload(data: Payload) -> Dict[str, Any]:
    if hasattr(data, 'to_dict'):
        return data.to_dict()
    return dict(data)


class ObservePointClient:
    """Client for interacting with the ObservePoint REST API.

    The API key is resolved once at construction: a key found in local
    storage wins over the build-time fallback. Changing the key rebuilds the
    underlying transport, so every later call uses the new credential.
    """

    def __init__(self, storage: Optional[LocalStorage] = None,
                 config: Optional[ClientConfig] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.storage = storage if storage is not None else MemoryStorage()
        if config is None:
            config = get_client_config(self.storage.get_item(API_KEY_STORAGE_KEY))
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._initialize_client()

    def _initialize_client(self):
        """(Re)build the HTTP client for the current configuration."""
        self.close()

        headers = {'Content-Type': 'application/json'}
        if self.config.api_key:
            headers['Authorization'] = f'api_key {self.config.api_key}'

        self._client = httpx.Client(
            base_url=self.config.base_url,
            headers=headers,
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._initialize_client()
        return self._client

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, json: Optional[Any] = None,
                 params: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a request and normalize error responses.

        Raises:
            InvalidApiKeyError: On HTTP 401
            ObservePointAPIError: On any other error response with a JSON body
            httpx.HTTPError: On transport failures and error responses without one
        """
        try:
            response = self.client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise

        if response.status_code == 401:
            logger.warning(f"{method} {path} rejected: invalid API key")
            raise InvalidApiKeyError()

        if response.is_error:
            body = None
            if response.content:
                try:
                    body = response.json()
                except ValueError:
                    logger.error(f"{method} {path} returned {response.status_code} with a non-JSON body")
            if body is not None:
                message = 'API request failed'
                if isinstance(body, dict) and body.get('message'):
                    message = body['message']
                logger.error(f"{method} {path} returned {response.status_code}: {message}")
                raise ObservePointAPIError(message, status_code=response.status_code, payload=body)
            response.raise_for_status()

        if not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # API key management
    # ------------------------------------------------------------------

    def set_api_key(self, api_key: str):
        """Store a new key locally and rebuild the transport with it"""
        self.storage.set_item(API_KEY_STORAGE_KEY, api_key)
        self.config = self.config.with_api_key(api_key)
        self._initialize_client()
        logger.info(f"API key updated ({mask_api_key(api_key)})")

    def clear_api_key(self):
        """Forget the stored key and rebuild the transport without it"""
        self.storage.remove_item(API_KEY_STORAGE_KEY)
        self.config = self.config.with_api_key(None)
        self._initialize_client()
        logger.info("API key cleared")

    def has_api_key(self) -> bool:
        return self.config.has_api_key

    def test_api_key(self) -> bool:
        """Check the key with a minimal list request"""
        try:
            self._request('GET', '/web-journeys', params={'size': 1})
            return True
        except (ObservePointAPIError, httpx.HTTPError) as e:
            logger.info(f"API key test failed: {e}")
            return False

    # ------------------------------------------------------------------
    # Web journeys
    # ------------------------------------------------------------------

    def get_web_journeys(self) -> List[WebJourney]:
        data = self._request('GET', '/web-journeys') or []
        return [WebJourney.from_dict(item) for item in data]

    def get_web_journey(self, journey_id: str) -> WebJourney:
        return WebJourney.from_dict(self._request('GET', f'/web-journeys/{journey_id}'))

    def create_web_journey(self, journey: Payload) -> WebJourney:
        data = self._request('POST', '/web-journeys', json=_payload(journey))
        created = WebJourney.from_dict(data)
        logger.info(f"Created web journey {created.id} ({created.name})")
        return created

    def update_web_journey(self, journey_id: str, updates: Payload) -> WebJourney:
        data = self._request('PUT', f'/web-journeys/{journey_id}', json=_payload(updates))
        return WebJourney.from_dict(data)

    def delete_web_journey(self, journey_id: str):
        self._request('DELETE', f'/web-journeys/{journey_id}')
        logger.info(f"Deleted web journey {journey_id}")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def get_journey_actions(self, journey_id: str) -> List[WebJourneyAction]:
        data = self._request('GET', f'/web-journeys/{journey_id}/actions') or []
        actions = [WebJourneyAction.from_dict(item) for item in data]
        return sorted(actions, key=lambda a: a.sequence)

    def add_journey_action(self, journey_id: str, action: Payload) -> WebJourneyAction:
        data = self._request('POST', f'/web-journeys/{journey_id}/actions', json=_payload(action))
        return WebJourneyAction.from_dict(data)

    def update_journey_action(self, journey_id: str, action_id: str, updates: Payload) -> WebJourneyAction:
        data = self._request('PUT', f'/web-journeys/{journey_id}/actions/{action_id}', json=_payload(updates))
        return WebJourneyAction.from_dict(data)

    def delete_journey_action(self, journey_id: str, action_id: str):
        self._request('DELETE', f'/web-journeys/{journey_id}/actions/{action_id}')

    def reorder_journey_actions(self, journey_id: str, action_ids: List[str]):
        self._request('PUT', f'/web-journeys/{journey_id}/actions/order',
                      json={'actionIds': [str(a) for a in action_ids]})

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def run_web_journey(self, journey_id: str) -> WebJourneyRun:
        data = self._request('POST', f'/web-journeys/{journey_id}/run')
        run = WebJourneyRun.from_dict(data or {})
        logger.info(f"Started run {run.id} for web journey {journey_id}")
        return run

    def get_journey_runs(self, journey_id: str) -> List[WebJourneyRun]:
        data = self._request('GET', f'/web-journeys/{journey_id}/runs') or []
        return [WebJourneyRun.from_dict(item) for item in data]

    def get_journey_run(self, journey_id: str, run_id: str) -> WebJourneyRun:
        return WebJourneyRun.from_dict(self._request('GET', f'/web-journeys/{journey_id}/runs/{run_id}'))

    def stop_journey_run(self, journey_id: str, run_id: str):
        self._request('POST', f'/web-journeys/{journey_id}/runs/{run_id}/stop')
        logger.info(f"Stopped run {run_id} of web journey {journey_id}")

    def wait_for_run(self, journey_id: str, run_id: str, timeout: Optional[float] = None,
                     poll_interval: Optional[float] = None,
                     sleep: Callable[[float], None] = time.sleep) -> WebJourneyRun:
        """Re-fetch a run until it leaves the running state.

        Raises:
            TimeoutError: If the run is still running after timeout seconds
        """
        interval = self.config.poll_interval_seconds if poll_interval is None else poll_interval
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            run = self.get_journey_run(journey_id, run_id)
            if run.status != 'running':
                return run
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError(f"Run {run_id} of web journey {journey_id} still running after {timeout}s")
            logger.debug(f"Run {run_id} still running, polling again in {interval}s")
            sleep(interval)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def get_rules(self) -> List[Rule]:
        data = self._request('GET', '/rules') or []
        return [Rule.from_dict(item) for item in data]

    def get_rule(self, rule_id: str) -> Rule:
        return Rule.from_dict(self._request('GET', f'/rules/{rule_id}'))

    def create_rule(self, rule: Payload) -> Rule:
        return Rule.from_dict(self._request('POST', '/rules', json=_payload(rule)))

    def update_rule(self, rule_id: str, updates: Payload) -> Rule:
        return Rule.from_dict(self._request('PUT', f'/rules/{rule_id}', json=_payload(updates)))

    def delete_rule(self, rule_id: str):
        self._request('DELETE', f'/rules/{rule_id}')

    def assign_rule_to_journey(self, rule_id: str, journey_id: str):
        self._request('POST', f'/rules/{rule_id}/journeys/{journey_id}')

    def remove_rule_from_journey(self, rule_id: str, journey_id: str):
        self._request('DELETE', f'/rules/{rule_id}/journeys/{journey_id}')
