"""
Minimal client for the etcd v2 keys API
"""
import logging
import requests
from typing import Optional
from urllib.parse import quote
from ..errors import CompareFailedError, EtcdError, KeyNotFoundError

logger = logging.getLogger(__name__)

KEY_NOT_FOUND = 100
COMPARE_FAILED = 101


class EtcdKeysClient:
    """
    Stateless wrapper over GET/PUT on /v2/keys.

    Transport failures surface as requests exceptions; error bodies returned
    by etcd surface as EtcdError subclasses.
    """

    def __init__(self, base_url: str, timeout: float = 5.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def key_url(self, key: str) -> str:
        return f"{self.base_url}/v2/keys/{quote(key.lstrip('/'), safe='/')}"

    def get(self, key: str, quorum: bool = False) -> Optional[str]:
        """Value of key, or None when the key does not exist"""
        params = {'quorum': 'true'} if quorum else None
        response = self.session.get(self.key_url(key), params=params, timeout=self.timeout)
        try:
            body = self._check(response)
        except KeyNotFoundError:
            return None
        return body.get('node', {}).get('value')

    def reset(self, key: str, value) -> None:
        """Unconditionally set key to value"""
        response = self.session.put(self.key_url(key), data={'value': str(value)}, timeout=self.timeout)
        self._check(response)

    def cas(self, key: str, expected, new) -> bool:
        """Set key to new if its current value is expected; False when the comparison fails"""
        response = self.session.put(
            self.key_url(key),
            params={'prevValue': str(expected)},
            data={'value': str(new)},
            timeout=self.timeout
        )
        try:
            self._check(response)
        except CompareFailedError:
            return False
        return True

    def close(self) -> None:
        self.session.close()

    def _check(self, response: requests.Response) -> dict:
        """Return the decoded body, raising EtcdError for etcd error responses"""
        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code < 400 and isinstance(body, dict):
            return body

        if not isinstance(body, dict):
            raise EtcdError(None, f"unexpected response body: {response.text[:200]!r}",
                            status_code=response.status_code)

        error_code = body.get('errorCode')
        message = body.get('message', '')
        cause = body.get('cause')
        if error_code == KEY_NOT_FOUND:
            raise KeyNotFoundError(error_code, message, cause, response.status_code)
        if error_code == COMPARE_FAILED:
            raise CompareFailedError(error_code, message, cause, response.status_code)
        raise EtcdError(error_code, message or f"HTTP {response.status_code}", cause, response.status_code)
