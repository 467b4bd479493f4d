"""
Exception types raised by the harness
"""
from typing import List, Optional, Sequence


class EtcdemoError(Exception):
    """Base class for all harness errors"""


class RemoteCommandError(EtcdemoError):
    """A command run on a node exited unsuccessfully"""

    def __init__(self, node: str, command: Sequence[str], returncode: int, stderr: str = ""):
        self.node = node
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"{node}: command {' '.join(self.command)!r} exited with {returncode}: {stderr.strip()}"
        )


class SetupFailure(EtcdemoError):
    """Installing or launching etcd on a node failed"""

    def __init__(self, node: str, message: str):
        self.node = node
        super().__init__(f"{node}: {message}")


class ReadinessTimeout(SetupFailure):
    """The daemon never accepted client connections within the deadline"""

    def __init__(self, node: str, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(node, f"{url} not ready within {timeout:.2f}s")


class ClusterSetupError(EtcdemoError):
    """One or more nodes failed setup; the whole cluster has been torn down"""

    def __init__(self, failures: dict):
        self.failures = failures
        failed = ', '.join(sorted(failures))
        super().__init__(f"Setup failed on {len(failures)} node(s): {failed}")


class EtcdError(EtcdemoError):
    """An application-level error reported by the etcd keys API"""

    def __init__(self, error_code: Optional[int], message: str, cause: Optional[str] = None,
                 status_code: Optional[int] = None):
        self.error_code = error_code
        self.message = message
        self.cause = cause
        self.status_code = status_code
        super().__init__(f"etcd error {error_code} ({status_code}): {message}"
                         + (f" [{cause}]" if cause else ""))


class KeyNotFoundError(EtcdError):
    """errorCode 100"""


class CompareFailedError(EtcdError):
    """errorCode 101"""


def describe_failures(failures: dict) -> List[str]:
    """Render a node -> exception mapping as log lines"""
    return [f"{node}: {error}" for node, error in sorted(failures.items())]
