from typing import Callable
import psutil
from errors import MemoryReadError
from models import MemorySample, MemoryStatus

GB = 1024 ** 3
OK_THRESHOLD = 45
CRITICAL_THRESHOLD = 15

def classify(pct_free: float) -> MemoryStatus:
    """Map a percentage of free memory to a health status"""
    if pct_free >= OK_THRESHOLD:
        return MemoryStatus.OK
    if pct_free >= CRITICAL_THRESHOLD:
        return MemoryStatus.WARNING
    return MemoryStatus.CRITICAL

def sample(reader: Callable = psutil.virtual_memory) -> MemorySample:
    """Read physical memory statistics from the host"""
    try:
        stats = reader()
        total = stats.total
        free = stats.available
    except Exception as e:
        raise MemoryReadError(f"Unable to read memory statistics: {str(e)}") from e

    if not total:
        raise MemoryReadError("Host reported zero total memory")

    pct_free = round(free / total * 100, 2)
    return MemorySample(
        status=classify(pct_free),
        pct_free=pct_free,
        free_gb=round(free / GB, 2),
        total_gb=round(total / GB)
    )
