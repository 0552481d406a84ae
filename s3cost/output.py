"""
Report presentation: the console result sink, file export and run summary.
"""
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .constants import CURRENCY, REPORT_HEADER, SIZE_DISPLAY_EPSILON_GB
from .models import BucketUsage, Report
from .utils import generate_run_id, get_timestamp, write_csv, write_json

logger = logging.getLogger(__name__)

CSV_FIELDNAMES = ['name', 'region', 'object_count', 'total_size_gb', 'total_cost_usd']


def format_bucket_lines(usage: BucketUsage, verbose: bool = False) -> List[str]:
    """
    Format one bucket as report lines.

    The first line holds object count, GB, cost, name and region. In verbose
    mode each storage class with a nonzero size follows on its own line, and
    a blank line closes the block.
    """
    lines = [
        f"{int(usage.object_count):12d} {usage.total_size:14.2f} {usage.total_cost:14.2f}"
        f"  {usage.name} ({usage.region})"
    ]
    if verbose:
        for storage_class in usage.nonzero_classes(SIZE_DISPLAY_EPSILON_GB):
            lines.append(
                f" {usage.size_by_class[storage_class]:26.2f}"
                f" {usage.cost_by_class[storage_class]:14.2f}   - {storage_class}"
            )
        lines.append("")
    return lines


class ConsoleSink:
    """Writes each bucket's block to a stream with a single write."""

    def __init__(self, stream: Optional[IO[str]] = None, verbose: bool = False):
        self.stream = stream if stream is not None else sys.stdout
        self.verbose = verbose

    def write_header(self) -> None:
        self.stream.write(REPORT_HEADER + "\n")
        self.stream.flush()

    def emit(self, usage: BucketUsage) -> None:
        block = "\n".join(format_bucket_lines(usage, self.verbose)) + "\n"
        self.stream.write(block)
        self.stream.flush()


def build_output_data(report: Report, default_region: str, run_id: Optional[str] = None) -> Dict[str, Any]:
    """Assemble the JSON export document."""
    data: Dict[str, Any] = {
        'run_id': run_id or generate_run_id(),
        'timestamp': get_timestamp(),
        'default_region': default_region,
        'currency': CURRENCY,
    }
    data.update(report.to_dict())
    return data


def write_report(report: Report, output_dir: str, default_region: str) -> List[str]:
    """
    Export the report as JSON and CSV into output_dir.

    Returns:
        Paths of the files written
    """
    os.makedirs(output_dir, exist_ok=True)
    output_base = output_dir.rstrip('/')
    file_ts = datetime.now(timezone.utc).strftime('%H%M%S')

    json_path = f"{output_base}/s3_cost_report_{file_ts}.json"
    write_json(build_output_data(report, default_region), json_path)
    written = [json_path]

    rows = [
        {
            'name': b.name,
            'region': b.region,
            'object_count': int(b.object_count),
            'total_size_gb': round(b.total_size, 2),
            'total_cost_usd': round(b.total_cost, 2),
        }
        for b in report
    ]
    if rows:
        csv_path = f"{output_base}/s3_cost_report.csv"
        write_csv(rows, csv_path, fieldnames=CSV_FIELDNAMES)
        written.append(csv_path)

    return written


def print_run_summary(report: Report, stream: Optional[IO[str]] = None) -> None:
    """
    Print bucket count and totals.

    Uses a rich panel on a terminal and plain text otherwise (e.g. when
    stderr is redirected to a file).
    """
    stream = stream if stream is not None else sys.stderr

    if stream.isatty():
        table = Table(title="S3 Storage Cost Summary", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Buckets", f"{len(report):,}")
        table.add_row("Objects", f"{int(report.total_objects):,}")
        table.add_row("Total Size", f"{report.total_size:,.2f} GB")
        table.add_row("Estimated Monthly Cost", f"${report.total_cost:,.2f} {CURRENCY}")
        Console(file=stream).print(Panel(table))
        return

    stream.write(f"\n{'='*60}\n")
    stream.write("S3 Storage Cost Summary\n")
    stream.write(f"{'='*60}\n")
    stream.write(f"  Buckets:                {len(report):,}\n")
    stream.write(f"  Objects:                {int(report.total_objects):,}\n")
    stream.write(f"  Total Size:             {report.total_size:,.2f} GB\n")
    stream.write(f"  Estimated Monthly Cost: ${report.total_cost:,.2f} {CURRENCY}\n")
    stream.flush()
