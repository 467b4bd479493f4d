"""
Register client - read/write/cas register semantics over etcd with outcome classification
"""
import logging
import requests
from typing import Callable, Optional
from urllib3.exceptions import ReadTimeoutError
from ..models import ErrorKind, Operation, OperationType, OutcomeRecord
from ..errors import EtcdError, KeyNotFoundError
from ..interfaces import IRegisterClient
from ..cluster_orchestrator.topology import ClusterTopology
from .keys_client import EtcdKeysClient
from .namespace import KeyNamespace

logger = logging.getLogger(__name__)


def parse_long(value: Optional[str]) -> Optional[int]:
    """Parses a stored value to an int. Passes through None."""
    if value is None:
        return None
    return int(value)


class RegisterClient(IRegisterClient):
    """
    Client for one node. The instance built by the harness is a template;
    open() returns a copy bound to a node's client URL.

    invoke() never raises for transport or store errors. Reads that time out
    definitely had no effect and fail; writes and CAS operations that time
    out may have been applied after we gave up, so they are reported as info.
    """

    def __init__(self, topology: ClusterTopology, namespace: Optional[KeyNamespace] = None,
                 store_factory: Callable[[str, float], EtcdKeysClient] = EtcdKeysClient):
        self.topology = topology
        self.namespace = namespace or KeyNamespace()
        self.store_factory = store_factory
        self.node: Optional[str] = None
        self.store = None

    def open(self, node: str) -> 'RegisterClient':
        client = RegisterClient(self.topology, self.namespace, self.store_factory)
        client.node = node
        client.store = self.store_factory(self.topology.client_url(node),
                                          self.topology.config.request_timeout)
        return client

    def invoke(self, operation: Operation) -> OutcomeRecord:
        if self.store is None:
            raise RuntimeError("Client is not open; call open(node) first")

        key = self.namespace.physical_key(operation.key)
        try:
            if operation.f == OperationType.READ:
                return OutcomeRecord.ok(parse_long(self.store.get(key, quorum=True)))

            if operation.f == OperationType.WRITE:
                self.store.reset(key, operation.value)
                return OutcomeRecord.ok()

            if operation.f == OperationType.CAS:
                expected, new = operation.value
                if self.store.cas(key, expected, new):
                    return OutcomeRecord.ok()
                return OutcomeRecord.fail()

            raise ValueError(f"Unsupported operation: {operation.f}")

        except requests.Timeout as e:
            return self._unknown_effect(operation, ErrorKind.TIMEOUT, e)

        except KeyNotFoundError as e:
            return OutcomeRecord.fail(ErrorKind.NOT_FOUND, str(e))

        except requests.RequestException as e:
            # A timeout while reading the body arrives as ConnectionError wrapping ReadTimeoutError
            if any(isinstance(arg, ReadTimeoutError) for arg in e.args):
                return self._unknown_effect(operation, ErrorKind.TIMEOUT, e)
            return self._unknown_effect(operation, ErrorKind.CONNECTION, e)

        except EtcdError as e:
            return self._unknown_effect(operation, ErrorKind.STORE_ERROR, e)

    def _unknown_effect(self, operation: Operation, kind: ErrorKind, error: Exception) -> OutcomeRecord:
        """Pure operations fail safely; mutations become indeterminate"""
        logger.debug(f"{self.node}: {operation.f.value} {operation.key} -> {kind.value}: {error}")
        if operation.f.is_mutating:
            return OutcomeRecord.info(kind, str(error))
        return OutcomeRecord.fail(kind, str(error))

    def close(self) -> None:
        # Safe to call twice
        if self.store is not None:
            self.store.close()
            self.store = None
