import logging
from contextlib import contextmanager
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional
from ..models import ClusterConfig, DaemonHandle
from ..errors import (
    ClusterSetupError, ReadinessTimeout, RemoteCommandError, SetupFailure, describe_failures
)
from ..interfaces import IDatabase, IRemote
from ..control.util import install_archive, start_daemon, stop_daemon
from ..utils.etcd_utils import is_node_alive, wait_until
from .topology import ClusterTopology

logging.basicConfig(format='%(levelname)-5s | %(filename)s:%(lineno)-3d | %(message)s', level=logging.INFO)
logger = logging.getLogger(__name__)


class EtcdDatabase(IDatabase):
    """Installs, launches, stops and removes etcd on individual nodes"""

    def __init__(self, config: ClusterConfig, remote: IRemote, sudo: bool = True,
                 probe: Callable[[str, float], bool] = is_node_alive):
        self.config = config
        self.remote = remote
        self.sudo = sudo
        self.probe = probe
        self.handles: Dict[str, DaemonHandle] = {}

    def build_daemon_args(self, node: str, topology: ClusterTopology) -> List[str]:
        """
        Build the etcd startup options for a node.

        Every node gets the same --initial-cluster value; only the per-node URLs differ.
        """
        return [
            '--log-output', 'stderr',
            '--name', node,
            '--listen-peer-urls', topology.peer_url(node),
            '--listen-client-urls', topology.client_url(node),
            '--advertise-client-urls', topology.client_url(node),
            '--initial-cluster-state', 'new',
            '--initial-advertise-peer-urls', topology.peer_url(node),
            '--initial-cluster', topology.initial_cluster(),
        ]

    def setup(self, node: str, topology: ClusterTopology) -> DaemonHandle:
        """Install etcd on a node, start it, and wait until it accepts clients"""
        config = self.config
        handle = DaemonHandle(
            node=node,
            install_dir=config.install_dir,
            log_file=config.log_file,
            pid_file=config.pid_file
        )
        self.handles[node] = handle

        logger.info(f"{node}: installing etcd {config.version}")
        try:
            install_archive(self.remote, node, config.archive_url, config.install_dir, sudo=self.sudo)
        except RemoteCommandError as e:
            raise SetupFailure(node, f"install of etcd {config.version} failed: {e}") from e
        logger.info(f"{node}: installed etcd {config.version}")

        try:
            start_daemon(
                self.remote, node,
                binary=config.binary_path,
                args=self.build_daemon_args(node, topology),
                logfile=config.log_file,
                pidfile=config.pid_file,
                chdir=config.install_dir,
                sudo=self.sudo
            )
        except RemoteCommandError as e:
            raise SetupFailure(node, f"launch failed: {e}") from e

        self.wait_for_ready(node, topology)
        return handle

    def wait_for_ready(self, node: str, topology: ClusterTopology) -> None:
        """Poll the node's client URL until it answers or the readiness deadline passes"""
        url = topology.client_url(node)
        timeout = self.config.readiness_timeout
        logger.info(f"{node}: waiting for {url} (timeout: {timeout:.2f}s)")

        probe_timeout = min(self.config.readiness_interval * 4, self.config.request_timeout)
        if not wait_until(lambda: self.probe(url, probe_timeout), timeout, self.config.readiness_interval):
            raise ReadinessTimeout(node, url, timeout)

        logger.info(f"{node}: etcd is ready")

    def teardown(self, node: str) -> None:
        """Stop etcd and delete the install directory; safe on nodes that were never set up"""
        logger.info(f"{node}: tearing down etcd")
        stop_daemon(self.remote, node, self.config.pid_file, sudo=self.sudo)
        self.remote.exec(node, ['rm', '-rf', self.config.install_dir], sudo=self.sudo)
        self.handles.pop(node, None)

    def log_files(self, node: str) -> List[str]:
        return [self.config.log_file]


def setup_cluster(db: IDatabase, topology: ClusterTopology,
                  max_workers: Optional[int] = None) -> Dict[str, DaemonHandle]:
    """
    Set up every node concurrently and wait for all of them.

    If any node fails, every node is torn down before ClusterSetupError is raised.
    """
    nodes = list(topology.nodes)
    logger.info(f"Setting up {len(nodes)} nodes")

    handles: Dict[str, DaemonHandle] = {}
    failures: Dict[str, Exception] = {}

    with ThreadPoolExecutor(max_workers=max_workers or len(nodes)) as executor:
        futures = {node: executor.submit(db.setup, node, topology) for node in nodes}
        for node, future in futures.items():
            try:
                handles[node] = future.result()
            except Exception as e:
                failures[node] = e

    if failures:
        for line in describe_failures(failures):
            logger.error(f"Setup failed on {line}")
        teardown_cluster(db, nodes)
        raise ClusterSetupError(failures)

    logger.info(f"All {len(nodes)} nodes are ready")
    return handles


def teardown_cluster(db: IDatabase, nodes: Iterable[str]) -> Dict[str, Exception]:
    """Tear down every node, continuing past failures; returns the failures by node"""
    failures: Dict[str, Exception] = {}
    for node in nodes:
        try:
            db.teardown(node)
        except Exception as e:
            logger.error(f"Teardown failed on {node}: {e}")
            failures[node] = e
    return failures


@contextmanager
def running_cluster(db: IDatabase, topology: ClusterTopology):
    """Set up the whole cluster for the duration of the block and always tear it down"""
    handles = setup_cluster(db, topology)
    try:
        yield handles
    finally:
        teardown_cluster(db, topology.nodes)
