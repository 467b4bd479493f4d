"""
Test Runner - drives a register workload against a freshly built etcd cluster
"""
import os
import time
import uuid
import logging
import threading
from datetime import datetime
from typing import List, Optional, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from ..models import ClusterConfig, OutcomeStatus, TestResult, WorkloadConfig
from ..errors import ClusterSetupError, RemoteCommandError
from ..interfaces import IDatabase, IRegisterClient, IRemote
from ..cluster_orchestrator import ClusterTopology, EtcdDatabase, setup_cluster, teardown_cluster
from ..register_client import KeyNamespace, RegisterClient
from .error_handler import ErrorCategory, ErrorContext, ErrorHandler, ErrorSeverity
from .history import HistoryRecorder
from .workload import KeyAllocator, Workload

logger = logging.getLogger(__name__)


class TestRunner:
    """
    Runs one test: cluster setup barrier, concurrent workers over independent
    keys, log collection, and a single teardown whatever happens in between.
    """
    __test__ = False  # Not a pytest test class

    def __init__(self, nodes: Sequence[str], remote: IRemote,
                 config: Optional[ClusterConfig] = None,
                 workload_config: Optional[WorkloadConfig] = None,
                 store_dir: str = "store",
                 db: Optional[IDatabase] = None,
                 client: Optional[IRegisterClient] = None):
        self.config = config or ClusterConfig()
        self.workload_config = workload_config or WorkloadConfig()
        self.topology = ClusterTopology.from_nodes(nodes, self.config)
        self.remote = remote
        self.store_dir = store_dir
        self.db = db or EtcdDatabase(self.config, remote)
        self.client = client or RegisterClient(self.topology, KeyNamespace(self.workload_config.key_prefix))
        self.error_handler = ErrorHandler()
        self._stop = threading.Event()

    def generate_test_id(self) -> str:
        return f"etcd-{datetime.now().strftime('%Y%m%dT%H%M%S')}-{str(uuid.uuid4())[:8]}"

    def run(self, test_id: Optional[str] = None) -> TestResult:
        test_id = test_id or self.generate_test_id()
        nodes = list(self.topology.nodes)
        start_time = time.time()
        recorder = HistoryRecorder(self.store_dir, test_id)

        logger.info(f"Starting test {test_id} on {len(nodes)} nodes: {', '.join(nodes)}")
        logger.info(f"Initial cluster: {self.topology.initial_cluster()}")

        try:
            setup_cluster(self.db, self.topology)
        except ClusterSetupError as e:
            self.error_handler.record_node_failures(e.failures, ErrorCategory.CLUSTER_SETUP,
                                                    ErrorSeverity.FATAL)
            return TestResult(
                test_id=test_id,
                success=False,
                start_time=start_time,
                end_time=time.time(),
                nodes=nodes,
                error_message=str(e),
                error_summary=self.error_handler.get_error_summary()
            )

        log_paths: List[str] = []
        error_message = None
        try:
            self.run_workers(recorder)
            log_paths = self.collect_logs(recorder.test_dir)
        except Exception as e:
            error_message = f"Workload aborted: {e}"
            self.error_handler.handle_error(ErrorContext(
                category=ErrorCategory.CLIENT,
                severity=ErrorSeverity.FATAL,
                message=error_message,
                exception=e
            ))
            raise
        finally:
            failures = teardown_cluster(self.db, nodes)
            self.error_handler.record_node_failures(failures, ErrorCategory.CLUSTER_TEARDOWN,
                                                    ErrorSeverity.MEDIUM)
            recorder.write({'nodes': nodes, 'initial_cluster': self.topology.initial_cluster()})

        end_time = time.time()
        logger.info(f"Test {test_id} finished in {end_time - start_time:.2f}s")
        for line in recorder.summary_lines():
            logger.info(line)

        return TestResult(
            test_id=test_id,
            success=not self.error_handler.has_fatal_errors(),
            start_time=start_time,
            end_time=end_time,
            nodes=nodes,
            outcome_counts=recorder.counts,
            operations_executed=recorder.completed_operations(),
            history_file=str(recorder.history_file),
            log_files=log_paths,
            error_message=error_message,
            error_summary=self.error_handler.get_error_summary()
        )

    def run_workers(self, recorder: HistoryRecorder) -> None:
        """Run every worker until the time limit, one client per worker"""
        cfg = self.workload_config
        nodes = list(self.topology.nodes)
        groups = (cfg.concurrency + cfg.threads_per_key - 1) // cfg.threads_per_key
        allocator = KeyAllocator(groups, cfg.ops_per_key)
        workload = Workload(cfg.seed, cfg.value_range)
        deadline = time.monotonic() + cfg.time_limit

        logger.info(f"Running {cfg.concurrency} workers in {groups} key groups for {cfg.time_limit:.2f}s")
        self._stop.clear()

        with ThreadPoolExecutor(max_workers=cfg.concurrency) as executor:
            futures = [
                executor.submit(self._worker, worker, nodes[worker % len(nodes)],
                                worker // cfg.threads_per_key, allocator, workload, recorder, deadline)
                for worker in range(cfg.concurrency)
            ]
            for future in as_completed(futures):
                try:
                    future.result()
                except Exception:
                    self._stop.set()
                    raise

    def _worker(self, worker: int, node: str, group: int, allocator: KeyAllocator,
                workload: Workload, recorder: HistoryRecorder, deadline: float) -> None:
        concurrency = self.workload_config.concurrency
        process = worker
        client = self.client.open(node)
        try:
            while not self._stop.is_set() and time.monotonic() < deadline:
                key, _ = allocator.claim(group)
                operation = workload.next_operation(key)

                recorder.invoke(process, node, operation)
                outcome = client.invoke(operation)
                recorder.complete(process, node, operation, outcome)

                # An indeterminate process may still be in flight; later ops get a fresh process id
                if outcome.status == OutcomeStatus.INFO:
                    process += concurrency

                delay = workload.stagger(self.workload_config.stagger)
                if delay:
                    time.sleep(min(delay, max(0.0, deadline - time.monotonic())))
        finally:
            client.close()

    def collect_logs(self, test_dir) -> List[str]:
        """Download every node's log files into the test directory"""
        collected = []
        for node in self.topology.nodes:
            node_dir = os.path.join(str(test_dir), node)
            os.makedirs(node_dir, exist_ok=True)
            for remote_path in self.db.log_files(node):
                local_path = os.path.join(node_dir, os.path.basename(remote_path))
                try:
                    self.remote.download(node, remote_path, local_path)
                    collected.append(local_path)
                except RemoteCommandError as e:
                    self.error_handler.handle_error(ErrorContext(
                        category=ErrorCategory.LOG_COLLECTION,
                        severity=ErrorSeverity.LOW,
                        message=f"Could not download {remote_path}: {e}",
                        exception=e,
                        node=node
                    ))
        return collected
