"""
Control - running commands, installing archives and supervising daemons on nodes
"""
from .remote import SSHRemote, LocalRemote
from .util import install_archive, start_daemon, stop_daemon

__all__ = [
    'SSHRemote',
    'LocalRemote',
    'install_archive',
    'start_daemon',
    'stop_daemon',
]
