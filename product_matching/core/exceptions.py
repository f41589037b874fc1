"""
Custom exception classes for the product matching package.

Matching itself never raises for "no match found"; these exceptions are
reserved for the I/O edges (taxonomy sources, import files).
"""

from typing import Any, Dict, Optional


class MatchingPipelineError(Exception):
    """
    Base exception class for all product matching errors

    Attributes:
        message: Error message
        stage: Stage where error occurred
        details: Additional error details
        original_exception: Original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        self.message = message
        self.stage = stage
        self.details = details or {}
        self.original_exception = original_exception

        full_message = message
        if stage:
            full_message = f"[{stage.upper()}] {message}"

        super().__init__(full_message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "stage": self.stage,
            "details": self.details,
            "original_exception": str(self.original_exception)
            if self.original_exception
            else None,
        }


class TaxonomyLoadError(MatchingPipelineError):
    """
    Exception raised when a taxonomy source cannot be read

    Common causes:
    - Missing export file
    - Unsupported file format
    - Malformed JSON/CSV content
    """

    def __init__(
        self,
        message: str,
        source_path: Optional[str] = None,
        source_name: Optional[str] = None,
        original_exception: Optional[Exception] = None,
    ):
        details = {}
        if source_path:
            details["source_path"] = source_path
        if source_name:
            details["source_name"] = source_name

        super().__init__(
            message=message,
            stage="taxonomy",
            details=details,
            original_exception=original_exception,
        )


class ImportRecordError(MatchingPipelineError):
    """Exception raised when an import file cannot be turned into records"""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        record_index: Optional[int] = None,
        original_exception: Optional[Exception] = None,
    ):
        details = {}
        if file_path:
            details["file_path"] = file_path
        if record_index is not None:
            details["record_index"] = record_index

        super().__init__(
            message=message,
            stage="import",
            details=details,
            original_exception=original_exception,
        )


__all__ = [
    "MatchingPipelineError",
    "TaxonomyLoadError",
    "ImportRecordError",
]
