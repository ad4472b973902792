import math

from app.core.config import settings

# Histogram intervals in seconds, smallest first
NICE_INTERVALS = [
    1, 5, 10, 15, 30,                  # seconds
    60, 300, 600, 900, 1800,           # minutes
    3600, 3 * 3600, 6 * 3600, 12 * 3600,  # hours
    86400,                             # 1 day
]

ONE_DAY = 86400


def get_bucket_size(
    start: int,
    end: int,
    num_buckets: int | None = None,
    min_bucket_size: int = 0,
) -> int:
    """
    Pick the histogram bucket size for a time window.

    Args:
        start: Window start in epoch milliseconds
        end: Window end in epoch milliseconds
        num_buckets: Target number of buckets, defaults to BUCKET_TARGET_COUNT
        min_bucket_size: Lower bound in seconds (e.g. the metrics reporting interval)

    Returns:
        int: Bucket size in seconds
    """
    target = num_buckets or settings.BUCKET_TARGET_COUNT
    span_seconds = max(end - start, 0) / 1000
    raw_size = max(math.ceil(span_seconds / target), 1)

    if raw_size > ONE_DAY:
        bucket_size = math.ceil(raw_size / ONE_DAY) * ONE_DAY
    else:
        bucket_size = next(size for size in NICE_INTERVALS if size >= raw_size)

    return max(bucket_size, min_bucket_size)
