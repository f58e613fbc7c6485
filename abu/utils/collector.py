"""
Result collection for concurrent query batches.

The collector is the fan-in half of the engine: it consumes task outcomes
from a queue while the executor is still running, keeps successes keyed by
submission index, and records failures with a classification. A batch with
any failure is reported as failed as a whole; callers never receive a partial
result set presented as complete.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from botocore.exceptions import ClientError
from botocore.exceptions import ConnectionError as BotoConnectionError
from botocore.exceptions import ConnectTimeoutError, ReadTimeoutError

from .correlation import get_run_id

logger = logging.getLogger(__name__)

R = TypeVar("R")

# Sentinel pushed by the executor once every worker has stopped
BATCH_DONE = object()

_THROTTLING_CODES = {
    "Throttling",
    "ThrottlingException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "LimitExceededException",
}
_AUTH_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedOperation",
    "UnrecognizedClientException",
    "ExpiredToken",
    "ExpiredTokenException",
    "InvalidClientTokenId",
}


@dataclass
class TaskOutcome(Generic[R]):
    """
    Outcome of one executed task.

    Attributes
    ----------
    index : int
        Position of the item in the submitted batch
    item : Any
        The submitted item (e.g. a QueryDescriptor)
    value : R, optional
        Payload returned by the task function on success
    error : Exception, optional
        Exception raised by the task function on failure
    """

    index: int
    item: Any
    value: Optional[R] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FailureInfo:
    """
    Information about a failed task.

    Attributes
    ----------
    identifier : str
        Identifier for the failed task (e.g. "123456789012/Amazon EC2/eu-west-1")
    error : str
        Error message
    error_type : str
        Type of error (e.g., "rate_limit", "timeout", "parse_error")
    retryable : bool
        Whether the task might succeed if the command is run again
    """

    identifier: str
    error: str
    error_type: str
    retryable: bool = False


class BatchFailedError(RuntimeError):
    """
    Raised when at least one task of a batch failed.

    Attributes
    ----------
    operation_type : str
        Name of the batch (e.g. "change")
    failures : List[FailureInfo]
        Every failure drained before the batch stopped
    succeeded : int
        Number of tasks that completed successfully
    total : int
        Number of submitted tasks
    skipped : int
        Tasks never started because the batch was aborted
    """

    def __init__(
        self,
        operation_type: str,
        failures: List[FailureInfo],
        succeeded: int,
        total: int,
        skipped: int = 0,
    ) -> None:
        first = failures[0] if failures else None
        detail = f": {first.identifier}: {first.error}" if first else ""
        super().__init__(
            f"{operation_type} failed: {len(failures)} of {total} queries failed"
            f"{detail}"
        )
        self.operation_type = operation_type
        self.failures = failures
        self.succeeded = succeeded
        self.total = total
        self.skipped = skipped


class ResultCollector(Generic[R]):
    """
    Streaming consumer of task outcomes.

    Parameters
    ----------
    operation_type : str
        Human-readable batch name used in logs and errors
    identify : callable, default=str
        Maps a submitted item to the identifier reported on failure
    """

    def __init__(
        self,
        operation_type: str = "batch",
        identify: Callable[[Any], str] = str,
    ) -> None:
        self.operation_type = operation_type
        self._identify = identify
        self._successes: Dict[int, R] = {}
        self.failures: List[FailureInfo] = []

    @property
    def completed(self) -> int:
        """Number of outcomes received so far."""
        return len(self._successes) + len(self.failures)

    @property
    def has_failures(self) -> bool:
        return len(self.failures) > 0

    @property
    def success_rate(self) -> float:
        """Ratio of successes to received outcomes (0.0-1.0)."""
        if self.completed == 0:
            return 0.0
        return len(self._successes) / self.completed

    def add(self, outcome: TaskOutcome[R]) -> None:
        """Record one outcome."""
        if outcome.error is None:
            self._successes[outcome.index] = outcome.value  # type: ignore[assignment]
            return

        error_type = _classify_error(outcome.error)
        failure = FailureInfo(
            identifier=self._identify(outcome.item),
            error=str(outcome.error),
            error_type=error_type,
            retryable=_is_retryable(error_type),
        )
        self.failures.append(failure)
        logger.warning(
            f"collector.{self.operation_type}.task_failed",
            extra={
                "run_id": get_run_id(),
                "identifier": failure.identifier,
                "error_type": failure.error_type,
                "retryable": failure.retryable,
                "error": failure.error,
            },
        )

    async def drain(self, queue: "asyncio.Queue[Any]") -> None:
        """Consume outcomes from ``queue`` until the ``BATCH_DONE`` sentinel."""
        while True:
            outcome = await queue.get()
            if outcome is BATCH_DONE:
                return
            self.add(outcome)

    def finish(self, total: int, skipped: int = 0) -> List[R]:
        """
        Close the batch.

        Parameters
        ----------
        total : int
            Number of submitted tasks
        skipped : int
            Number of tasks never started because the batch aborted

        Returns
        -------
        List[R]
            Successful payloads in submission order

        Raises
        ------
        BatchFailedError
            If any task failed
        """
        if self.failures:
            logger.error(
                f"collector.{self.operation_type}.failed",
                extra={
                    "run_id": get_run_id(),
                    "total": total,
                    "successes": len(self._successes),
                    "failures": len(self.failures),
                    "skipped": skipped,
                },
            )
            raise BatchFailedError(
                self.operation_type,
                list(self.failures),
                succeeded=len(self._successes),
                total=total,
                skipped=skipped,
            )

        logger.info(
            f"collector.{self.operation_type}.complete",
            extra={"run_id": get_run_id(), "total": total},
        )
        ordered: List[Tuple[int, R]] = sorted(self._successes.items())
        return [value for _, value in ordered]


def _classify_error(exc: Exception) -> str:
    """Classify exception into error type."""
    error_type = "unknown_error"

    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        if code in _THROTTLING_CODES or status == 429:
            error_type = "rate_limit"
        elif code in _AUTH_CODES or status in (401, 403):
            error_type = "auth_error"
        elif status >= 500:
            error_type = "server_error"
        else:
            error_type = "client_error"
    elif isinstance(exc, (ReadTimeoutError, ConnectTimeoutError, TimeoutError)):
        error_type = "timeout"
    elif isinstance(exc, BotoConnectionError):
        error_type = "connection_error"
    elif isinstance(exc, ValueError):
        error_type = "parse_error"
    elif isinstance(exc, KeyError):
        error_type = "missing_field"

    return error_type


def _is_retryable(error_type: str) -> bool:
    """Determine if an error type is retryable."""
    retryable_types = {
        "timeout",
        "connection_error",
        "server_error",
        "rate_limit",
    }
    return error_type in retryable_types


def format_failure_summary(error: BatchFailedError) -> str:
    """
    Format a human-readable summary of a failed batch.

    Parameters
    ----------
    error : BatchFailedError
        The failure to summarize

    Returns
    -------
    str
        Multi-line summary grouped by error type
    """
    lines = [
        f"{error.operation_type}: {len(error.failures)} of {error.total} queries "
        f"failed ({error.succeeded} succeeded, {error.skipped} not started); "
        "no report was produced.",
    ]

    # Group failures by type
    failures_by_type: Dict[str, List[FailureInfo]] = {}
    for failure in error.failures:
        failures_by_type.setdefault(failure.error_type, []).append(failure)

    for error_type, failures in failures_by_type.items():
        count = len(failures)
        retry_note = " (retryable)" if failures[0].retryable else " (not retryable)"
        lines.append(f"  - {count} {error_type}{retry_note}")

        # Show first few identifiers
        identifiers = [f.identifier for f in failures[:3]]
        if len(failures) > 3:
            identifiers.append(f"... and {len(failures) - 3} more")
        lines.append(f"    Affected: {', '.join(identifiers)}")
        lines.append(f"    First error: {failures[0].error}")

    return "\n".join(lines)

