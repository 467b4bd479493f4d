"""
Base interfaces and abstract classes for all major components
"""
import subprocess
from abc import ABC, abstractmethod
from typing import List, Sequence
from .models import DaemonHandle, Operation, OutcomeRecord


class IRemote(ABC):
    """Interface for running commands on cluster nodes"""

    @abstractmethod
    def exec(self, node: str, args: Sequence[str], check: bool = True,
             sudo: bool = False) -> subprocess.CompletedProcess:
        """Run a command on a node and return its completed process"""
        pass

    @abstractmethod
    def download(self, node: str, remote_path: str, local_path: str) -> None:
        """Copy a file from a node to the local host"""
        pass


class IDatabase(ABC):
    """Interface for per-node database lifecycle management"""

    @abstractmethod
    def setup(self, node: str, topology) -> DaemonHandle:
        """Install and launch the database on a node, returning once it is ready"""
        pass

    @abstractmethod
    def teardown(self, node: str) -> None:
        """Stop the database on a node and remove its installation"""
        pass

    @abstractmethod
    def log_files(self, node: str) -> List[str]:
        """Paths of the log files to collect from a node"""
        pass


class IRegisterClient(ABC):
    """Interface for register operations against a single node"""

    @abstractmethod
    def open(self, node: str) -> 'IRegisterClient':
        """Return a client bound to the given node"""
        pass

    @abstractmethod
    def invoke(self, operation: Operation) -> OutcomeRecord:
        """Execute an operation and classify its outcome"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release any resources held by this client"""
        pass
