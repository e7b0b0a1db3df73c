"""Scan workflow and storage exceptions."""

from typing import Optional
from .base import SortwiseError

class ProcessingError(SortwiseError):
    """Base class for scan workflow errors."""

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if stage:
            self.add_context('processing_stage', stage)


class RepositoryError(ProcessingError):
    """Raised when a scan or feedback record cannot be stored or read."""

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        scan_id: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, stage="persistence", **kwargs)
        if operation:
            self.add_context('repository_operation', operation)
        if scan_id is not None:
            self.add_context('scan_id', scan_id)

        self.add_suggestion("Check database connection")

    def _get_default_error_code(self) -> str:
        return "REPOSITORY_OPERATION_FAILED"


class BatchImportError(ProcessingError):
    """Raised when a batch import cannot proceed."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        failed_count: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, stage="batch_import", **kwargs)
        if source:
            self.add_context('source', source)
        if failed_count:
            self.add_context('failed_records', failed_count)

        self.add_suggestion("Check that the input file is JSON Lines, one scan per line")

    def _get_default_error_code(self) -> str:
        return "BATCH_IMPORT_FAILED"
