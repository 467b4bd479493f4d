"""
Harness - drives register workloads through the client adapter and records histories
"""
from .error_handler import ErrorHandler, ErrorContext, ErrorCategory, ErrorSeverity
from .workload import Workload, KeyAllocator
from .history import HistoryRecorder
from .runner import TestRunner

__all__ = [
    'ErrorHandler',
    'ErrorContext',
    'ErrorCategory',
    'ErrorSeverity',
    'Workload',
    'KeyAllocator',
    'HistoryRecorder',
    'TestRunner',
]
