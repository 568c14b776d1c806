import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """
    Split ``items`` into consecutive groups of at most ``size`` elements.

    Args:
        items: The sequence to split. Order is preserved.
        size: Maximum group length, at least 1.

    Returns:
        List[List[T]]: The groups; only the last one may be shorter.
    """
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}.")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


async def retry(
        operation: Callable[[], Awaitable[T]],
        max_attempts: int,
        base_delay_ms: float,
        description: str = "operation"
) -> T:
    """
    Await ``operation`` until it succeeds or the attempt budget runs out.

    After failed attempt ``i`` (zero-indexed) the next attempt is delayed by
    ``base_delay_ms * 2 ** i`` milliseconds. No delay follows the final
    attempt; its exception is re-raised unchanged.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per call.
        max_attempts: Maximum number of invocations, at least 1.
        base_delay_ms: Backoff base in milliseconds.
        description: Label used in log messages.

    Returns:
        The result of the first successful attempt.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}.")

    for attempt in range(max_attempts):
        try:
            return await operation()
        except Exception as exc:
            if attempt == max_attempts - 1:
                logger.error(f"{description} failed after {max_attempts} attempt(s): {exc}")
                raise
            delay_ms = base_delay_ms * (2 ** attempt)
            logger.warning(
                f"{description} failed ({exc.__class__.__name__}: {exc}). "
                f"Retrying in {delay_ms / 1000:.2f} seconds (Attempt {attempt + 1}/{max_attempts})"
            )
            await asyncio.sleep(delay_ms / 1000)

    # Unreachable: the loop either returns or re-raises.
    raise AssertionError("retry loop exited without a result")
