"""
Register Client - register semantics over the etcd keys API
"""
from .namespace import KeyNamespace
from .keys_client import EtcdKeysClient
from .client import RegisterClient, parse_long

__all__ = [
    'KeyNamespace',
    'EtcdKeysClient',
    'RegisterClient',
    'parse_long',
]
