"""
etcd HTTP utilities for safe session management and liveness probes
"""
import time
import logging
import requests
from typing import Callable
from contextlib import contextmanager

logger = logging.getLogger(__name__)


@contextmanager
def http_session():
    session = requests.Session()
    try:
        yield session
    finally:
        session.close()


def is_node_alive(client_url: str, timeout: float = 2.0) -> bool:
    """True when the node answers GET /version on its client URL"""
    try:
        with http_session() as session:
            response = session.get(f"{client_url}/version", timeout=timeout)
            return response.ok
    except requests.RequestException as e:
        logger.debug(f"Liveness probe of {client_url} failed: {e}")
        return False


def wait_until(predicate: Callable[[], bool], timeout: float, interval: float,
               clock: Callable[[], float] = time.monotonic,
               sleep: Callable[[float], None] = time.sleep) -> bool:
    """Poll predicate until it returns True or timeout elapses"""
    deadline = clock() + timeout
    while True:
        if predicate():
            return True
        if clock() >= deadline:
            return False
        sleep(interval)
