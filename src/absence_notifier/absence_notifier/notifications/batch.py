from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Optional, Sequence

from ..core.constants import DEFAULT_BATCH_CHUNK_SIZE, DEFAULT_BATCH_DELAY_SECONDS, DEFAULT_SEND_TIMEOUT_SECONDS
from ..core.exceptions import ValidationError
from ..core.logging import get_logger
from .dispatcher import NotificationDispatcher
from .model import BatchResult, NotificationRequest

logger = get_logger(__name__)


def default_label(request: NotificationRequest) -> str:
    return str(request.student_name or request.student_id)


class BatchSender:
    """Fan out dispatcher calls in fixed-size concurrent chunks.

    Every item of a chunk runs on its own worker; the next chunk starts only
    after the current one has finished (or timed out), with a fixed pause in
    between to stay under provider rate limits.

    A send that misses its deadline is counted as failed, but its worker
    thread is not interrupted. If it completes later, the message is
    delivered and the dispatcher still writes its delivered log row, so
    later passes dedup against it. ``BatchResult`` is not amended; the
    notification log is the record of what was actually delivered.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        *,
        chunk_size: int = DEFAULT_BATCH_CHUNK_SIZE,
        delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        send_timeout_seconds: float = DEFAULT_SEND_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if int(chunk_size) < 1:
            raise ValidationError("chunk_size must be at least 1")
        self._dispatcher = dispatcher
        self._chunk_size = int(chunk_size)
        self._delay = float(delay_seconds)
        self._timeout = float(send_timeout_seconds)
        self._sleep = sleep

    def send_all(
        self,
        requests: Sequence[NotificationRequest],
        *,
        label: Optional[Callable[[NotificationRequest], str]] = None,
    ) -> BatchResult:
        items = list(requests)
        label_of = label or default_label
        result = BatchResult(total=len(items))

        for index, start in enumerate(range(0, len(items), self._chunk_size)):
            if index and self._delay > 0:
                self._sleep(self._delay)
            chunk = items[start : start + self._chunk_size]
            result.chunk_sizes.append(len(chunk))
            self._send_chunk(chunk, result, label_of)

        logger.info(
            "Batch complete: %d total, %d sent, %d skipped, %d failed in %d chunk(s)",
            result.total,
            result.sent,
            result.skipped,
            result.failed,
            len(result.chunk_sizes),
        )
        return result

    def _send_chunk(self, chunk, result: BatchResult, label_of) -> None:
        executor = ThreadPoolExecutor(max_workers=len(chunk), thread_name_prefix="batch-send")
        try:
            futures = [(item, executor.submit(self._dispatcher.send, item)) for item in chunk]
            deadline = time.monotonic() + self._timeout
            for item, future in futures:
                try:
                    outcome = future.result(timeout=max(0.0, deadline - time.monotonic()))
                except FutureTimeout:
                    future.cancel()
                    logger.warning("Send for %s timed out after %.1fs", label_of(item), self._timeout)
                    result.record_failure(label_of(item), f"Timed out after {self._timeout:g}s")
                except Exception as e:
                    logger.exception("Send for %s raised", label_of(item))
                    result.record_failure(label_of(item), str(e))
                else:
                    result.record(label_of(item), outcome)
        finally:
            # A hung send must not hold up the next chunk.
            executor.shutdown(wait=False, cancel_futures=True)
