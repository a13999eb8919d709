import logging
from datetime import datetime
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler

STAMP_FORMAT = '%Y%m%d_%H%M%S'
TRANSCRIPT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
HANDLER_MARK = "_sharestats_handler"

def run_stamp(now: Optional[datetime] = None) -> str:
    """Timestamp embedded in per-run file names"""
    return (now or datetime.now()).strftime(STAMP_FORMAT)

def transcript_path(output_dir, base_name: str, stamp: str) -> Path:
    return Path(output_dir) / f"{base_name}_transcript_{stamp}.log"

def close_handler(handler: logging.Handler) -> None:
    logging.getLogger().removeHandler(handler)
    handler.close()

def setup_logging(verbose: bool = False, transcript: Optional[Path] = None,
                  console: Optional[Console] = None) -> Optional[logging.FileHandler]:
    """Configure console logging and, optionally, a plain-text run transcript"""
    root = logging.getLogger()
    # Replace what an earlier call installed, leave other handlers alone
    for handler in [h for h in root.handlers if getattr(h, HANDLER_MARK, False)]:
        close_handler(handler)
    root.setLevel(logging.DEBUG)

    console_handler = RichHandler(console=console, show_path=False, markup=False)
    setattr(console_handler, HANDLER_MARK, True)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.addHandler(console_handler)

    file_handler = None
    if transcript is not None:
        transcript = Path(transcript)
        transcript.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(transcript, encoding='utf-8')
        setattr(file_handler, HANDLER_MARK, True)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(TRANSCRIPT_FORMAT))
        root.addHandler(file_handler)

    # impacket is chatty at debug level
    logging.getLogger('impacket').setLevel(logging.WARNING)
    return file_handler
