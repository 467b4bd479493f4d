"""
Key namespace - maps logical register keys onto physical etcd keys
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class KeyNamespace:
    """
    Maps logical keys into the etcd key space.

    With no prefix this is the identity mapping, which is enough when the
    workload already hands each register instance its own key. A prefix
    keeps concurrent test runs against one cluster apart.
    """
    prefix: str = ""

    def __post_init__(self):
        if self.prefix.endswith('/'):
            raise ValueError(f"Key prefix must not end with '/': {self.prefix!r}")

    def physical_key(self, logical_key) -> str:
        key = str(logical_key)
        if self.prefix:
            return f"{self.prefix}/{key}"
        return key
