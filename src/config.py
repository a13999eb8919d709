from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv
from models import ErrorPolicy, LongPathPolicy

DEFAULT_EXCLUDED_SHARES = ['ADMIN$', 'IPC$', 'print$']

def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')

@dataclass
class Config:
    # Host whose share table is enumerated
    SMB_HOST: str = "localhost"
    SMB_USER: Optional[str] = None
    SMB_PASSWORD: Optional[str] = None
    SMB_DOMAIN: str = ""
    SMB_PORT: int = 445
    DEFAULT_EXCLUDED_SHARES: list = None
    SKIP_ADMIN_DRIVES: bool = True

    # Output locations
    SNAPSHOT_DIR: str = "snapshots"
    OUTPUT_DIR: str = "reports"
    BASE_NAME: str = "share_report"
    TRANSCRIPT: bool = True

    # Walk behaviour
    ERROR_POLICY: ErrorPolicy = ErrorPolicy.SKIP_UNREADABLE
    LONG_PATH_POLICY: LongPathPolicy = LongPathPolicy.WARN
    LONG_PATH_THRESHOLD: int = 260
    FIRST_MODE_PAUSE: float = 2.0

    def __post_init__(self):
        # Load environment variables
        load_dotenv()

        if self.DEFAULT_EXCLUDED_SHARES is None:
            excluded = os.getenv("SHARES_EXCLUDE")
            if excluded:
                self.DEFAULT_EXCLUDED_SHARES = [s.strip() for s in excluded.split(',') if s.strip()]
            else:
                self.DEFAULT_EXCLUDED_SHARES = list(DEFAULT_EXCLUDED_SHARES)

        self.SMB_HOST = os.getenv("SHARES_HOST", self.SMB_HOST)
        self.SMB_USER = os.getenv("SHARES_USER", self.SMB_USER)
        self.SMB_PASSWORD = os.getenv("SHARES_PASSWORD", self.SMB_PASSWORD)
        self.SMB_DOMAIN = os.getenv("SHARES_DOMAIN", self.SMB_DOMAIN)
        self.SMB_PORT = int(os.getenv("SHARES_PORT", self.SMB_PORT))

        self.SNAPSHOT_DIR = os.getenv("SHARES_SNAPSHOT_DIR", self.SNAPSHOT_DIR)
        self.OUTPUT_DIR = os.getenv("SHARES_OUTPUT_DIR", self.OUTPUT_DIR)
        self.BASE_NAME = os.getenv("SHARES_BASE_NAME", self.BASE_NAME)
        self.TRANSCRIPT = _env_bool("SHARES_TRANSCRIPT", self.TRANSCRIPT)
        self.FIRST_MODE_PAUSE = float(os.getenv("SHARES_PAUSE", self.FIRST_MODE_PAUSE))

        # Enum fields accept their string values from the CLI or the environment
        self.ERROR_POLICY = ErrorPolicy(os.getenv("SHARES_ERROR_POLICY", self.ERROR_POLICY))
        self.LONG_PATH_POLICY = LongPathPolicy(os.getenv("SHARES_LONG_PATH_POLICY", self.LONG_PATH_POLICY))

        if self.LONG_PATH_THRESHOLD < 1:
            raise ValueError("Long path threshold must be positive")
        if self.FIRST_MODE_PAUSE < 0:
            raise ValueError("Pause between shares cannot be negative")

    @property
    def has_credentials(self) -> bool:
        return bool(self.SMB_USER)
