"""
Cluster Orchestrator - etcd installation, launch and teardown across nodes
"""
from .topology import ClusterTopology
from .orchestrator import EtcdDatabase, setup_cluster, teardown_cluster, running_cluster

__all__ = [
    'ClusterTopology',
    'EtcdDatabase',
    'setup_cluster',
    'teardown_cluster',
    'running_cluster',
]
