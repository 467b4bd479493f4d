"""
Core data models for the etcd register harness
"""
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum


@dataclass(frozen=True)
class ClusterConfig:
    """Immutable configuration for an etcd installation"""
    version: str = "v3.1.5"
    install_dir: str = "/opt/etcd"
    binary: str = "etcd"
    peer_port: int = 2380
    client_port: int = 2379
    scheme: str = "http"
    archive_url_template: str = "https://storage.googleapis.com/etcd/{version}/etcd-{version}-linux-amd64.tar.gz"
    request_timeout: float = 5.0  # Per-call client timeout in seconds
    readiness_timeout: float = 30.0
    readiness_interval: float = 0.5

    def __post_init__(self):
        if self.peer_port == self.client_port:
            raise ValueError(f"Peer and client ports must differ (both {self.peer_port})")
        for name in ('request_timeout', 'readiness_timeout', 'readiness_interval'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

    @property
    def log_file(self) -> str:
        return posixpath.join(self.install_dir, f"{self.binary}.log")

    @property
    def pid_file(self) -> str:
        return posixpath.join(self.install_dir, f"{self.binary}.pid")

    @property
    def binary_path(self) -> str:
        return posixpath.join(self.install_dir, self.binary)

    @property
    def archive_url(self) -> str:
        return self.archive_url_template.format(version=self.version)


@dataclass(frozen=True)
class DaemonHandle:
    """Per-node record of where the daemon lives"""
    node: str
    install_dir: str
    log_file: str
    pid_file: str


class OperationType(Enum):
    """Register operations understood by the client adapter"""
    READ = "read"
    WRITE = "write"
    CAS = "cas"

    @property
    def is_mutating(self) -> bool:
        return self is not OperationType.READ


@dataclass(frozen=True)
class Operation:
    """A single register operation against a logical key"""
    f: OperationType
    key: Any
    value: Any = None  # None for read, scalar for write, (expected, new) for cas

    @classmethod
    def read(cls, key) -> 'Operation':
        return cls(OperationType.READ, key)

    @classmethod
    def write(cls, key, value) -> 'Operation':
        return cls(OperationType.WRITE, key, value)

    @classmethod
    def cas(cls, key, expected, new) -> 'Operation':
        return cls(OperationType.CAS, key, (expected, new))


class OutcomeStatus(Enum):
    """Tri-state outcome of an invoked operation"""
    OK = "ok"
    FAIL = "fail"
    INFO = "info"  # Indeterminate: the operation may or may not have taken effect


class ErrorKind(Enum):
    """Why an operation did not complete with ok"""
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    CONNECTION = "connection"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class OutcomeRecord:
    """Classified result of invoking an operation"""
    status: OutcomeStatus
    value: Any = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value=None) -> 'OutcomeRecord':
        return cls(OutcomeStatus.OK, value=value)

    @classmethod
    def fail(cls, error_kind: Optional[ErrorKind] = None, error: Optional[str] = None) -> 'OutcomeRecord':
        return cls(OutcomeStatus.FAIL, error_kind=error_kind, error=error)

    @classmethod
    def info(cls, error_kind: ErrorKind, error: Optional[str] = None) -> 'OutcomeRecord':
        return cls(OutcomeStatus.INFO, error_kind=error_kind, error=error)


@dataclass
class WorkloadConfig:
    """Configuration for the built-in register workload"""
    concurrency: int = 10
    threads_per_key: int = 5
    ops_per_key: int = 1000
    time_limit: float = 30.0
    value_range: int = 5
    stagger: float = 0.02  # Mean delay between operations of one worker
    key_prefix: str = ""
    seed: Optional[int] = None


@dataclass
class HistoryEvent:
    """One invocation or completion in a recorded history"""
    process: int
    type: str  # "invoke", "ok", "fail" or "info"
    f: str
    key: Any
    value: Any
    time: float
    node: Optional[str] = None
    error: Optional[str] = None


@dataclass
class TestResult:
    """Summary of a completed test run"""
    __test__ = False  # Not a pytest test class

    test_id: str
    success: bool
    start_time: float
    end_time: float
    nodes: List[str]
    outcome_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    operations_executed: int = 0
    history_file: Optional[str] = None
    log_files: List[str] = field(default_factory=list)
    error_message: Optional[str] = None
    error_summary: Optional[Dict[str, Any]] = None
