import pytest

from conftest import VirtualMemory
from errors import MemoryReadError
from memory_gauge import classify, sample
from models import MemoryStatus

GB = 1024 ** 3


@pytest.mark.parametrize("pct_free,expected", [
    (50, MemoryStatus.OK),
    (45, MemoryStatus.OK),
    (44.99, MemoryStatus.WARNING),
    (20, MemoryStatus.WARNING),
    (15, MemoryStatus.WARNING),
    (14.99, MemoryStatus.CRITICAL),
    (5, MemoryStatus.CRITICAL),
])
def test_classify_thresholds(pct_free, expected):
    assert classify(pct_free) is expected


def test_sample_computes_percentages():
    reading = sample(lambda: VirtualMemory(total=16 * GB, available=4 * GB))

    assert reading.status is MemoryStatus.WARNING
    assert reading.pct_free == 25.0
    assert reading.free_gb == 4.0
    assert reading.total_gb == 16


def test_sample_rounds_to_two_decimals():
    reading = sample(lambda: VirtualMemory(total=3, available=1))
    assert reading.pct_free == 33.33


def test_read_failure_is_reported():
    def broken():
        raise OSError("no /proc/meminfo")

    with pytest.raises(MemoryReadError, match="no /proc/meminfo"):
        sample(broken)


def test_zero_total_is_reported():
    with pytest.raises(MemoryReadError):
        sample(lambda: VirtualMemory(total=0, available=0))


def test_sample_reads_the_host():
    reading = sample()
    assert reading.total_gb >= 0
    assert 0 <= reading.pct_free <= 100
