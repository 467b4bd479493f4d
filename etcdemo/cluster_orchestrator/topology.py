"""
Cluster topology - addresses and founding membership derived from the node set
"""
from dataclasses import dataclass
from typing import Iterable, Tuple
from ..models import ClusterConfig


def node_url(scheme: str, node: str, port: int) -> str:
    """A URL for connecting to a node on a particular port"""
    return f"{scheme}://{node}:{port}"


@dataclass(frozen=True)
class ClusterTopology:
    """
    Immutable view of the cluster membership.

    Nodes are deduplicated and kept in sorted order, so every node that
    recomputes the topology during its own setup arrives at the same
    --initial-cluster string regardless of how the node set was iterated.
    """
    nodes: Tuple[str, ...]
    config: ClusterConfig

    @classmethod
    def from_nodes(cls, nodes: Iterable[str], config: ClusterConfig = None) -> 'ClusterTopology':
        unique = tuple(sorted(set(nodes)))
        if not unique:
            raise ValueError("A cluster needs at least one node")
        return cls(nodes=unique, config=config or ClusterConfig())

    def peer_url(self, node: str) -> str:
        """The URL other peers use to talk to a node"""
        return node_url(self.config.scheme, node, self.config.peer_port)

    def client_url(self, node: str) -> str:
        """The URL clients use to talk to a node"""
        return node_url(self.config.scheme, node, self.config.client_port)

    def membership_descriptor(self, nodes: Iterable[str] = None) -> str:
        """Initial cluster string, like "n1=http://n1:2380,n2=http://n2:2380,..." """
        members = self.nodes if nodes is None else sorted(set(nodes))
        return ','.join(f"{node}={self.peer_url(node)}" for node in members)

    def initial_cluster(self) -> str:
        return self.membership_descriptor()

    def __contains__(self, node: str) -> bool:
        return node in self.nodes
