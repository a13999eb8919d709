from dataclasses import dataclass
import traceback

class ShareStatsError(Exception):
    """Base exception for share statistics operations"""
    pass

class EnumerationError(ShareStatsError):
    """Raised when the host share table cannot be read"""
    pass

class SnapshotError(ShareStatsError):
    """Raised when a share snapshot cannot be written or parsed"""
    pass

class WalkError(ShareStatsError):
    """Raised when a share tree cannot be enumerated"""
    pass

class ReportError(ShareStatsError):
    """Raised when report or error log files cannot be written"""
    pass

class MemoryReadError(ShareStatsError):
    """Raised when host memory statistics are unavailable"""
    pass

@dataclass(frozen=True)
class FailureRecord:
    error_type: str
    message: str
    location: str
    statement: str

    def format(self) -> str:
        text = f"{self.error_type}: {self.message}"
        if self.location:
            text += f"\n  at {self.location}"
        if self.statement:
            text += f"\n  in: {self.statement}"
        return text

def describe_failure(exc: BaseException) -> FailureRecord:
    """Capture message, source location and failing statement of an exception"""
    frames = traceback.extract_tb(exc.__traceback__)
    location = ''
    statement = ''
    if frames:
        # Innermost frame is where the error was raised
        frame = frames[-1]
        location = f"{frame.filename}:{frame.lineno} ({frame.name})"
        statement = (frame.line or '').strip()
    return FailureRecord(
        error_type=type(exc).__name__,
        message=str(exc),
        location=location,
        statement=statement
    )
