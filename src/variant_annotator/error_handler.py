"""Error types, classification and reporting for the annotation pipeline."""

import json
import logging
import time
import traceback
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class VariantAnnotatorError(Exception):
    """Base class for fatal pipeline errors."""


class DataConsistencyViolation(VariantAnnotatorError):
    """A barcode groups perfect and non-perfect records together."""

    def __init__(self, barcodes: Iterable[str]):
        self.barcodes = sorted(str(bc) for bc in barcodes)
        preview = ', '.join(self.barcodes[:10])
        if len(self.barcodes) > 10:
            preview += f", ... ({len(self.barcodes) - 10} more)"
        super().__init__(
            f"Data consistency violation: {len(self.barcodes)} barcode(s) map to both "
            f"perfect and non-perfect records: {preview}"
        )


class InputSchemaError(VariantAnnotatorError):
    """An input table is missing required columns."""

    def __init__(self, source: str, missing: Iterable[str]):
        self.source = source
        self.missing = sorted(missing)
        super().__init__(
            f"Missing required columns in {source}: {', '.join(self.missing)}"
        )


class ErrorType(Enum):
    """Types of errors that can occur."""
    DATA_CONSISTENCY = "data_consistency"
    INPUT_SCHEMA = "input_schema"
    FILE_IO_ERROR = "file_io_error"
    PARSE_ERROR = "parse_error"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Context information for an error."""
    error_type: ErrorType
    severity: ErrorSeverity
    message: str
    timestamp: float
    operation: str
    details: Optional[Dict[str, Any]] = None
    traceback: Optional[str] = None
    suggestion: Optional[str] = None


SUGGESTIONS = {
    ErrorType.DATA_CONSISTENCY: (
        "Barcode collision groups must be all-perfect or all-mutant. "
        "Check the upstream barcode/variant mapping for the listed barcodes."
    ),
    ErrorType.INPUT_SCHEMA: "Check the input table headers against the expected columns.",
    ErrorType.FILE_IO_ERROR: "Check that the file exists and is readable.",
    ErrorType.PARSE_ERROR: "Check the file format and delimiter.",
    ErrorType.UNKNOWN: None,
}


class ErrorHandler:
    """Classifies, logs and records fatal pipeline errors."""

    def __init__(self):
        self.error_history: List[ErrorContext] = []

    def handle_error(self, error: Exception, operation: str, **kwargs) -> ErrorContext:
        """
        Handle an error with appropriate logging.

        Args:
            error: The exception that occurred
            operation: The operation being performed
            **kwargs: Additional context data

        Returns:
            ErrorContext with error details and suggestion
        """
        error_type = self._classify_error(error)
        severity = self._determine_severity(error_type)

        details = dict(kwargs)
        if isinstance(error, DataConsistencyViolation):
            details.setdefault('barcodes', error.barcodes)
        elif isinstance(error, InputSchemaError):
            details.setdefault('missing_columns', error.missing)

        context = ErrorContext(
            error_type=error_type,
            severity=severity,
            message=str(error),
            timestamp=time.time(),
            operation=operation,
            details=details,
            traceback=traceback.format_exc() if severity == ErrorSeverity.CRITICAL else None,
            suggestion=SUGGESTIONS.get(error_type),
        )

        self._log_error(context)
        self.error_history.append(context)
        return context

    def _classify_error(self, error: Exception) -> ErrorType:
        """Classify the error type based on exception."""
        if isinstance(error, DataConsistencyViolation):
            return ErrorType.DATA_CONSISTENCY
        if isinstance(error, InputSchemaError):
            return ErrorType.INPUT_SCHEMA
        if isinstance(error, (FileNotFoundError, PermissionError, IsADirectoryError)):
            return ErrorType.FILE_IO_ERROR

        error_str = str(error).lower()
        if any(term in error_str for term in ['parse', 'parsing', 'tokenizing', 'json', 'fasta']):
            return ErrorType.PARSE_ERROR

        return ErrorType.UNKNOWN

    def _determine_severity(self, error_type: ErrorType) -> ErrorSeverity:
        if error_type in (ErrorType.DATA_CONSISTENCY, ErrorType.UNKNOWN):
            return ErrorSeverity.CRITICAL
        return ErrorSeverity.ERROR

    def _log_error(self, context: ErrorContext):
        log_message = f"{context.operation} - {context.error_type.value}: {context.message}"
        if context.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_message)
        elif context.severity == ErrorSeverity.ERROR:
            logger.error(log_message)
        else:
            logger.warning(log_message)

        if context.suggestion:
            logger.info(f"Suggestion: {context.suggestion}")
        if context.traceback:
            logger.debug(f"Traceback:\n{context.traceback}")

    def get_error_summary(self) -> Dict[str, Any]:
        """Get summary of recorded errors."""
        by_type: Dict[str, int] = {}
        by_severity: Dict[str, int] = {}
        for error in self.error_history:
            by_type[error.error_type.value] = by_type.get(error.error_type.value, 0) + 1
            by_severity[error.severity.value] = by_severity.get(error.severity.value, 0) + 1

        return {
            'total_errors': len(self.error_history),
            'by_type': by_type,
            'by_severity': by_severity,
        }

    def export_error_report(self, output_file: Path) -> None:
        """Write recorded errors to a JSON report."""
        report = {
            'generated_at': datetime.now().isoformat(),
            'summary': self.get_error_summary(),
            'detailed_errors': [],
        }

        for error in self.error_history:
            error_dict = asdict(error)
            error_dict['error_type'] = error.error_type.value
            error_dict['severity'] = error.severity.value
            error_dict['timestamp'] = datetime.fromtimestamp(error.timestamp).isoformat()
            report['detailed_errors'].append(error_dict)

        with open(output_file, 'w') as f:
            json.dump(report, f, indent=2, default=str)

        logger.info(f"Error report exported to {output_file}")
