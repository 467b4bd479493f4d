"""
Shared test doubles: a remote that records commands and an in-memory etcd
"""
import shlex
import threading
import subprocess
import pytest
from typing import Dict, List, Optional, Set, Tuple
from etcdemo.errors import KeyNotFoundError, RemoteCommandError
from etcdemo.interfaces import IRemote
from etcdemo.models import ClusterConfig


class FakeRemote(IRemote):
    """Records every command per node and simulates the files they touch"""

    def __init__(self):
        self.commands: List[Tuple[str, List[str], bool]] = []
        self.files: Dict[str, Set[str]] = {}
        self.failures: Dict[Tuple[str, str], List] = {}
        self.downloads: List[Tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def fail(self, node: str, program: str, returncode: int = 1, times: Optional[int] = None):
        """Make program fail on node, every time or only the next `times` runs"""
        self.failures[(node, program)] = [returncode, times]

    def clear_failure(self, node: str, program: str):
        self.failures.pop((node, program), None)

    def commands_for(self, node: str) -> List[List[str]]:
        return [args for n, args, _ in self.commands if n == node]

    @staticmethod
    def program(args: List[str]) -> str:
        if args[0] == 'sh' and len(args) > 2:
            return shlex.split(args[2])[0]
        return args[0]

    def exec(self, node, args, check=True, sudo=False):
        args = list(args)
        program = self.program(args)
        with self._lock:
            self.commands.append((node, args, sudo))
            files = self.files.setdefault(node, set())
            returncode = self._failure(node, program)

            if returncode == 0:
                if program == 'test':
                    returncode = 0 if args[-1] in files else 1
                elif program == 'rm':
                    target = args[-1]
                    for path in list(files):
                        if path == target or path.startswith(target.rstrip('/') + '/'):
                            files.discard(path)
                elif program == 'curl':
                    files.add(args[args.index('--output') + 1])
                elif program == 'mv':
                    source, target = args[-2], args[-1]
                    if source in files:
                        files.discard(source)
                        files.add(target)
                    else:
                        returncode = 1
                elif program == 'start-stop-daemon' and args[0] == 'sh':
                    daemon = shlex.split(args[2])
                    files.add(daemon[daemon.index('--pidfile') + 1])

        if check and returncode != 0:
            raise RemoteCommandError(node, args, returncode, f"{program} failed")
        return subprocess.CompletedProcess(args, returncode, stdout='', stderr='')

    def _failure(self, node, program) -> int:
        entry = self.failures.get((node, program))
        if entry is None:
            return 0
        returncode, times = entry
        if times is not None:
            entry[1] -= 1
            if entry[1] <= 0:
                del self.failures[(node, program)]
        return returncode

    def download(self, node, remote_path, local_path):
        self.downloads.append((node, remote_path, local_path))
        with open(local_path, 'w') as f:
            f.write(f"log of {node}\n")


class FakeEtcd:
    """A single linearizable register store shared by every node"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.lock = threading.Lock()
        self.calls: List[Tuple[str, str, str]] = []

    def client(self, url: str, timeout: float) -> 'FakeKeysClient':
        return FakeKeysClient(self, url, timeout)


class FakeKeysClient:
    """Same surface as EtcdKeysClient; errors can be injected per client"""

    def __init__(self, etcd: FakeEtcd, url: str, timeout: float):
        self.etcd = etcd
        self.url = url
        self.timeout = timeout
        self.error = None
        self.closed = 0

    def _maybe_fail(self):
        if self.error is not None:
            raise self.error

    def get(self, key, quorum=False):
        self._maybe_fail()
        with self.etcd.lock:
            self.etcd.calls.append((self.url, 'get', key))
            return self.etcd.data.get(key)

    def reset(self, key, value):
        self._maybe_fail()
        with self.etcd.lock:
            self.etcd.calls.append((self.url, 'reset', key))
            self.etcd.data[key] = str(value)

    def cas(self, key, expected, new):
        self._maybe_fail()
        with self.etcd.lock:
            self.etcd.calls.append((self.url, 'cas', key))
            if key not in self.etcd.data:
                raise KeyNotFoundError(100, "Key not found", f"/{key}", 404)
            if self.etcd.data[key] != str(expected):
                return False
            self.etcd.data[key] = str(new)
            return True

    def close(self):
        self.closed += 1


@pytest.fixture
def fast_config():
    """Cluster config with readiness polling short enough for unit tests"""
    return ClusterConfig(readiness_timeout=0.2, readiness_interval=0.01)


@pytest.fixture
def fake_remote():
    return FakeRemote()


@pytest.fixture
def fake_etcd():
    return FakeEtcd()


@pytest.fixture
def nodes():
    return ["n1", "n2", "n3"]
