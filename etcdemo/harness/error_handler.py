"""
Error Handler - Centralized recording of harness failures

Setup, teardown and log collection failures are categorized, logged at a
level matching their severity and kept for the final test summary. Nothing
here retries: retry policy belongs to whoever drives the operations.
"""
import logging
from typing import Any, Dict, List, Optional
from enum import Enum
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for errors"""
    LOW = "low"  # Non-critical, can continue
    MEDIUM = "medium"  # Degraded run, results still usable
    HIGH = "high"  # A node or phase failed
    FATAL = "fatal"  # The run must be aborted


class ErrorCategory(Enum):
    """Categories of errors for targeted handling"""
    CLUSTER_SETUP = "cluster_setup"
    CLUSTER_TEARDOWN = "cluster_teardown"
    CLIENT = "client"
    LOG_COLLECTION = "log_collection"
    HISTORY = "history"
    CONFIGURATION = "configuration"


@dataclass
class ErrorContext:
    """Context information for an error"""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exception: Optional[Exception] = None
    node: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ErrorHandler:
    """Collects error contexts for a test run"""

    def __init__(self):
        self.error_history: List[ErrorContext] = []

    def handle_error(self, error_context: ErrorContext) -> bool:
        """Record an error; returns True when the run can continue"""
        self._log_error(error_context)
        self.error_history.append(error_context)
        return error_context.severity != ErrorSeverity.FATAL

    def record_node_failures(self, failures: Dict[str, Exception], category: ErrorCategory,
                             severity: ErrorSeverity = ErrorSeverity.HIGH) -> None:
        for node, error in sorted(failures.items()):
            self.handle_error(ErrorContext(
                category=category,
                severity=severity,
                message=str(error),
                exception=error,
                node=node
            ))

    def _log_error(self, error_context: ErrorContext):
        """Log error with appropriate level based on severity"""
        log_message = f"[{error_context.category.value}] {error_context.message}"

        if error_context.node:
            log_message += f" (node: {error_context.node})"

        if error_context.severity == ErrorSeverity.FATAL:
            logger.critical(log_message)
        elif error_context.severity == ErrorSeverity.HIGH:
            logger.error(log_message)
        elif error_context.severity == ErrorSeverity.MEDIUM:
            logger.warning(log_message)
        else:
            logger.info(log_message)

    def has_fatal_errors(self) -> bool:
        return any(e.severity == ErrorSeverity.FATAL for e in self.error_history)

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of all errors encountered"""
        errors_by_category = {}
        errors_by_severity = {}

        for error in self.error_history:
            category = error.category.value
            errors_by_category[category] = errors_by_category.get(category, 0) + 1

            severity = error.severity.value
            errors_by_severity[severity] = errors_by_severity.get(severity, 0) + 1

        return {
            'total_errors': len(self.error_history),
            'by_category': errors_by_category,
            'by_severity': errors_by_severity,
            'recent_errors': [
                {
                    'category': e.category.value,
                    'severity': e.severity.value,
                    'node': e.node,
                    'message': e.message
                }
                for e in self.error_history[-10:]  # Last 10 errors
            ]
        }
