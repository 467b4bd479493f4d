"""
Install and daemon supervision helpers built on a remote command runner
"""
import shlex
import logging
import posixpath
from typing import Sequence
from ..errors import RemoteCommandError
from ..interfaces import IRemote

logger = logging.getLogger(__name__)

ARCHIVE_CACHE_DIR = "/tmp/etcdemo"


def file_exists(remote: IRemote, node: str, path: str, sudo: bool = True) -> bool:
    """True when path exists on node"""
    return remote.exec(node, ['test', '-e', path], check=False, sudo=sudo).returncode == 0


def _fetch_archive(remote: IRemote, node: str, url: str, archive: str, sudo: bool) -> None:
    """Download url to archive; a partial download never occupies the cached path"""
    partial = f"{archive}.part"
    logger.info(f"{node}: downloading {url}")
    remote.exec(node, ['rm', '-f', partial], sudo=sudo)
    remote.exec(node, ['curl', '--fail', '--silent', '--show-error', '--location',
                       '--output', partial, url], sudo=sudo)
    remote.exec(node, ['mv', '-f', partial, archive], sudo=sudo)


def _clear_dir(remote: IRemote, node: str, path: str, sudo: bool) -> None:
    remote.exec(node, ['rm', '-rf', path], sudo=sudo)
    remote.exec(node, ['mkdir', '-p', path], sudo=sudo)


def _untar(remote: IRemote, node: str, archive: str, dest: str, sudo: bool) -> None:
    remote.exec(node, ['tar', '--extract', '--gzip', '--file', archive,
                       '--directory', dest, '--strip-components', '1'], sudo=sudo)


def install_archive(remote: IRemote, node: str, url: str, dest: str, sudo: bool = True) -> None:
    """
    Fetch a .tar.gz archive from url and unpack it into dest.

    The archive's single top-level directory is stripped, so
    etcd-v3.1.5-linux-amd64/etcd ends up as dest/etcd. Any previous
    contents of dest are removed first. A cached archive that tar cannot
    unpack is deleted and downloaded once more.
    """
    archive = posixpath.join(ARCHIVE_CACHE_DIR, posixpath.basename(url))

    remote.exec(node, ['mkdir', '-p', ARCHIVE_CACHE_DIR], sudo=sudo)
    if not file_exists(remote, node, archive, sudo=sudo):
        _fetch_archive(remote, node, url, archive, sudo)

    _clear_dir(remote, node, dest, sudo)
    try:
        _untar(remote, node, archive, dest, sudo)
    except RemoteCommandError as e:
        logger.warning(f"{node}: could not unpack {archive}, downloading it again: {e}")
        remote.exec(node, ['rm', '-f', archive], sudo=sudo)
        _fetch_archive(remote, node, url, archive, sudo)
        _clear_dir(remote, node, dest, sudo)
        _untar(remote, node, archive, dest, sudo)


def start_daemon(remote: IRemote, node: str, binary: str, args: Sequence[str], logfile: str,
                 pidfile: str, chdir: str, sudo: bool = True) -> None:
    """Start binary in the background, appending its output to logfile and recording its pid"""
    daemon = [
        'start-stop-daemon', '--start',
        '--background', '--no-close',
        '--make-pidfile', '--pidfile', pidfile,
        '--chdir', chdir,
        '--oknodo',
        '--exec', binary,
        '--', *args,
    ]
    script = f"{shlex.join(daemon)} >> {shlex.quote(logfile)} 2>&1"
    logger.info(f"{node}: starting {posixpath.basename(binary)}")
    remote.exec(node, ['sh', '-c', script], sudo=sudo)


def stop_daemon(remote: IRemote, node: str, pidfile: str, sudo: bool = True) -> bool:
    """
    Stop the process recorded in pidfile. Returns False when there was
    nothing to stop; a missing pid file or an already-dead process is not
    an error.
    """
    if not file_exists(remote, node, pidfile, sudo=sudo):
        logger.info(f"{node}: no pid file at {pidfile}, nothing to stop")
        return False

    remote.exec(node, ['start-stop-daemon', '--stop', '--oknodo',
                       '--retry', 'TERM/5/KILL/5', '--pidfile', pidfile], sudo=sudo)
    remote.exec(node, ['rm', '-f', pidfile], sudo=sudo)
    logger.info(f"{node}: stopped daemon from {pidfile}")
    return True
