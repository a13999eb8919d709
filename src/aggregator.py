import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn
from config import Config
from errors import MemoryReadError
from memory_gauge import sample
from models import MemoryStatus, ShareError, ShareRecord, ShareResult
from report import ReportFiles, render_summary, write_report
from share_enumerator import load_snapshot
from walker import share_error, walk_share

logger = logging.getLogger(__name__)

@dataclass
class RunOutcome:
    results: List[ShareResult] = field(default_factory=list)
    errors: List[ShareError] = field(default_factory=list)

def select_shares(records: List[ShareRecord], first: int = 0) -> List[ShareRecord]:
    """All shares when first <= 0, otherwise the first `first` of them"""
    if first <= 0:
        return list(records)
    return list(records[:first])

def progress_total(records: List[ShareRecord], first: int = 0) -> int:
    # In "first" mode progress is measured against the requested count
    return first if first > 0 else len(records)

def percent_complete(done: int, total: int) -> int:
    if total <= 0:
        return 100
    return round(done / total * 100)

class ShareAggregator:
    def __init__(self, config: Config, walker: Callable = walk_share, gauge: Callable = sample,
                 sleep: Callable[[float], None] = time.sleep, console: Optional[Console] = None):
        self.config = config
        self.walker = walker
        self.gauge = gauge
        self.sleep = sleep
        self.console = console or Console()

    def check_memory(self, record: ShareRecord) -> None:
        """Log memory health before a share is walked"""
        try:
            reading = self.gauge()
        except MemoryReadError as e:
            logger.warning("Memory check failed before share %s: %s", record.name, e)
            return

        logger.debug(
            "Memory before %s: %s, %.2f%% free (%.2f GB of %d GB)",
            record.name, reading.status.value, reading.pct_free, reading.free_gb, reading.total_gb
        )
        if reading.status is MemoryStatus.CRITICAL:
            logger.warning("Memory is critically low: %.2f%% free", reading.pct_free)

    def walk(self, record: ShareRecord):
        try:
            return self.walker(
                record,
                error_policy=self.config.ERROR_POLICY,
                long_path_policy=self.config.LONG_PATH_POLICY,
                threshold=self.config.LONG_PATH_THRESHOLD
            )
        except Exception as e:
            # One broken share must not stop the rest of the run
            logger.exception("Unexpected error walking share %s", record.name)
            return share_error(record, str(e))

    def run(self, records: List[ShareRecord], first: int = 0) -> RunOutcome:
        selected = select_shares(records, first)
        total = progress_total(records, first)
        outcome = RunOutcome()

        mode = f"first {first}" if first > 0 else "all"
        logger.info("Walking %d of %d shares (mode: %s)", len(selected), len(records), mode)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True
        ) as progress:
            task = progress.add_task("[cyan]Walking shares...", total=total or 1)

            for index, record in enumerate(selected):
                if index > 0 and first > 0 and self.config.FIRST_MODE_PAUSE:
                    self.sleep(self.config.FIRST_MODE_PAUSE)

                progress.update(task, description=f"[cyan]{record.name}")
                self.check_memory(record)

                result = self.walk(record)
                if isinstance(result, ShareError):
                    outcome.errors.append(result)
                else:
                    outcome.results.append(result)

                done = index + 1
                progress.update(task, completed=done)
                logger.info(
                    "%d%% complete (%d/%d) - %s",
                    percent_complete(done, total), done, total, record.name
                )

        return outcome

def filter_excluded(records: Iterable[ShareRecord], exclude: Iterable[str]) -> List[ShareRecord]:
    denied = {name.lower() for name in exclude}
    return [r for r in records if r.name.lower() not in denied]

def generate_report(input_snapshot, output_dir, exclude: Iterable[str], first: int,
                    config: Config, base_name: Optional[str] = None,
                    aggregator: Optional[ShareAggregator] = None,
                    stamp: Optional[str] = None) -> Tuple[RunOutcome, ReportFiles]:
    """Walk every share in a snapshot and write the CSV report and error log"""
    records = filter_excluded(load_snapshot(input_snapshot), exclude)
    aggregator = aggregator or ShareAggregator(config)

    outcome = aggregator.run(records, first)
    files = write_report(
        outcome.results,
        outcome.errors,
        Path(output_dir),
        base_name or config.BASE_NAME,
        stamp=stamp
    )
    render_summary(outcome.results, outcome.errors, aggregator.console)
    return outcome, files
