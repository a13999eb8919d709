from dataclasses import dataclass
from enum import Enum
from typing import Dict

class MemoryStatus(Enum):
    OK = "OK"
    WARNING = "Warning"
    CRITICAL = "Critical"

class ErrorPolicy(Enum):
    SKIP_UNREADABLE = "skip-unreadable"
    ABORT_ON_UNREADABLE = "abort-on-unreadable"

class LongPathPolicy(Enum):
    WARN = "warn"
    SKIP = "skip"

@dataclass(frozen=True)
class ShareRecord:
    name: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {'Name': self.name, 'Path': self.path}

    @classmethod
    def from_dict(cls, data: Dict) -> "ShareRecord":
        return cls(name=str(data['Name']), path=str(data['Path']))

@dataclass(frozen=True)
class ShareResult:
    name: str
    path: str
    size_bytes: int
    files: int
    folders: int

@dataclass(frozen=True)
class ShareError:
    name: str
    path: str
    error: str
    timestamp: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'Name': self.name,
            'Path': self.path,
            'Error': self.error,
            'Timestamp': self.timestamp
        }

@dataclass(frozen=True)
class MemorySample:
    status: MemoryStatus
    pct_free: float
    free_gb: float
    total_gb: int
