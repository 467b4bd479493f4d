"""
Remote command execution on cluster nodes over ssh, or on the local host
"""
import shlex
import shutil
import logging
import subprocess
from typing import List, Optional, Sequence
from ..errors import RemoteCommandError
from ..interfaces import IRemote

logger = logging.getLogger(__name__)


def run_command(node: str, cmd: Sequence[str], args: Sequence[str],
                timeout: Optional[float]) -> subprocess.CompletedProcess:
    """Run cmd locally; a command that outlives timeout is reported as a failed command"""
    try:
        return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise RemoteCommandError(node, args, -1, f"timed out after {timeout}s") from e


class SSHRemote(IRemote):
    """Runs commands on nodes through the ssh and scp binaries"""

    def __init__(self, username: str = "root", port: int = 22, private_key: Optional[str] = None,
                 strict_host_key_checking: bool = False, connect_timeout: float = 10.0,
                 command_timeout: Optional[float] = 600.0, ssh_binary: str = "ssh",
                 scp_binary: str = "scp"):
        self.username = username
        self.port = port
        self.private_key = private_key
        self.strict_host_key_checking = strict_host_key_checking
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.ssh_binary = ssh_binary
        self.scp_binary = scp_binary

    def _options(self) -> List[str]:
        options = [
            '-o', 'BatchMode=yes',
            '-o', f"ConnectTimeout={int(self.connect_timeout)}",
            '-o', f"StrictHostKeyChecking={'yes' if self.strict_host_key_checking else 'no'}",
        ]
        if not self.strict_host_key_checking:
            options += ['-o', 'UserKnownHostsFile=/dev/null', '-o', 'LogLevel=ERROR']
        if self.private_key:
            options += ['-i', self.private_key]
        return options

    def _destination(self, node: str) -> str:
        return f"{self.username}@{node}" if self.username else node

    def build_command(self, node: str, args: Sequence[str], sudo: bool = False) -> List[str]:
        """Build the local argv that runs args on node"""
        remote_cmd = shlex.join(args)
        if sudo and self.username != 'root':
            remote_cmd = f"sudo -n sh -c {shlex.quote(remote_cmd)}"
        return [self.ssh_binary, '-p', str(self.port), *self._options(),
                self._destination(node), remote_cmd]

    def exec(self, node: str, args: Sequence[str], check: bool = True,
             sudo: bool = False) -> subprocess.CompletedProcess:
        cmd = self.build_command(node, args, sudo=sudo)
        logger.debug(f"{node}: {shlex.join(args)}")
        result = run_command(node, cmd, args, self.command_timeout)
        if check and result.returncode != 0:
            raise RemoteCommandError(node, args, result.returncode, result.stderr)
        return result

    def download(self, node: str, remote_path: str, local_path: str) -> None:
        cmd = [self.scp_binary, '-P', str(self.port), *self._options(),
               f"{self._destination(node)}:{remote_path}", local_path]
        result = run_command(node, cmd, cmd, self.command_timeout)
        if result.returncode != 0:
            raise RemoteCommandError(node, cmd, result.returncode, result.stderr)


class LocalRemote(IRemote):
    """Runs every node's commands on this host; only single-node clusters fit on one machine"""

    def __init__(self, command_timeout: Optional[float] = 600.0):
        self.command_timeout = command_timeout

    def exec(self, node: str, args: Sequence[str], check: bool = True,
             sudo: bool = False) -> subprocess.CompletedProcess:
        cmd = ['sudo', '-n', *args] if sudo else list(args)
        logger.debug(f"{node} (local): {shlex.join(args)}")
        result = run_command(node, cmd, args, self.command_timeout)
        if check and result.returncode != 0:
            raise RemoteCommandError(node, args, result.returncode, result.stderr)
        return result

    def download(self, node: str, remote_path: str, local_path: str) -> None:
        try:
            shutil.copyfile(remote_path, local_path)
        except OSError as e:
            raise RemoteCommandError(node, ['cp', remote_path, local_path], 1, str(e)) from e
