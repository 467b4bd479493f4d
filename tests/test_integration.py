"""
Integration test against real nodes

Runs only when ETCDEMO_NODES names reachable hosts (comma-separated) that
accept root ssh logins, e.g. ETCDEMO_NODES=n1,n2,n3 pytest tests/test_integration.py
"""
import os
import pytest
import logging
from etcdemo.cluster_orchestrator import ClusterTopology, EtcdDatabase, running_cluster
from etcdemo.control.remote import SSHRemote
from etcdemo.models import ClusterConfig, Operation, OutcomeStatus, WorkloadConfig
from etcdemo.harness.runner import TestRunner
from etcdemo.register_client import KeyNamespace, RegisterClient

logging.basicConfig(format='%(levelname)-5s | %(filename)s:%(lineno)-3d | %(message)s', level=logging.INFO, force=True)

NODES = [node.strip() for node in os.environ.get('ETCDEMO_NODES', '').split(',') if node.strip()]

pytestmark = pytest.mark.skipif(not NODES, reason="ETCDEMO_NODES not set")


def test_write_then_read_across_nodes():
    config = ClusterConfig()
    remote = SSHRemote(username=os.environ.get('ETCDEMO_SSH_USER', 'root'))
    topology = ClusterTopology.from_nodes(NODES, config)
    template = RegisterClient(topology, KeyNamespace("integration"))

    with running_cluster(EtcdDatabase(config, remote), topology):
        writer = template.open(topology.nodes[0])
        reader = template.open(topology.nodes[-1])
        try:
            assert writer.invoke(Operation.write(1, 3)).status == OutcomeStatus.OK
            read = reader.invoke(Operation.read(1))
        finally:
            writer.close()
            reader.close()

    assert read.status == OutcomeStatus.OK
    assert read.value == 3


def test_short_run(tmp_path):
    remote = SSHRemote(username=os.environ.get('ETCDEMO_SSH_USER', 'root'))
    runner = TestRunner(
        NODES,
        remote,
        workload_config=WorkloadConfig(concurrency=len(NODES) * 2, time_limit=5.0, seed=1),
        store_dir=str(tmp_path)
    )

    result = runner.run()

    assert result.success
    assert result.operations_executed > 0
    assert len(result.log_files) == len(set(NODES))
