import random


def exponential_backoff(
    attempt: int,
    base: float = 1000.0,
    cap: float | None = None,
    jitter: bool = False,
) -> float:
    """
    Exponential backoff with optional cap and jitter.

    Returns ``base * 2**attempt`` in the same unit as ``base``.
    """
    delay = base * (2 ** attempt)
    if cap is not None:
        delay = min(cap, delay)
    if jitter:
        delay *= random.uniform(0.7, 1.3)
    return delay
