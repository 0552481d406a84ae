#!/usr/bin/env python3
"""
S3 Cost Collector

Estimates the monthly storage charge of every S3 bucket in an account from the
daily CloudWatch storage metrics (BucketSizeBytes per storage class and
NumberOfObjects) and a static Tokyo price table. Storage only: request and
transfer charges are not included.

Usage:
    # All buckets, default profile
    python3 s3_cost_collect.py

    # Named profile, per-storage-class detail
    python3 s3_cost_collect.py -p billing -v

    # Only some buckets, also export JSON/CSV
    python3 s3_cost_collect.py --buckets logs,archive -o ./reports

    # Fewer concurrent buckets when CloudWatch throttles
    python3 s3_cost_collect.py --workers 5
"""
import argparse
import logging
import sys
from typing import List, Optional

from botocore.exceptions import BotoCoreError

from s3cost.aggregator import Aggregator
from s3cost.collector import UsageCollector
from s3cost.config import ConfigError, RunConfig, generate_sample_config, load_config
from s3cost.models import Report
from s3cost.output import ConsoleSink, print_run_summary, write_report
from s3cost.pricing import PriceTable
from s3cost.sources import CloudWatchMetricSource, S3BucketLocator, get_session
from s3cost.utils import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='S3 Cost Collector - estimated monthly storage charges per bucket',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 s3_cost_collect.py -p billing -v
  python3 s3_cost_collect.py --buckets logs,archive -o ./reports
  python3 s3_cost_collect.py --generate-config > s3cost-config.yaml
"""
    )

    # Flags default to None so unset flags do not override config file values
    parser.add_argument('-p', '--profile', default=None,
                        help='AWS shared credential profile name (default: default)')
    parser.add_argument('-v', '--verbose', action='store_true', default=None,
                        help='Show cost detail per storage class')
    parser.add_argument('-w', '--workers', type=int, default=None,
                        help='Maximum buckets collected concurrently (default: 20)')
    parser.add_argument('--default-region', default=None,
                        help='Region for bucket listing and for buckets whose region '
                             'cannot be resolved (default: ap-northeast-1)')
    parser.add_argument('--buckets', default=None,
                        help='Comma-separated bucket names (default: all buckets)')
    parser.add_argument('-o', '--output', default=None,
                        help='Directory for JSON/CSV export')
    parser.add_argument('--config', default=None, help='YAML config file')
    parser.add_argument('--generate-config', action='store_true',
                        help='Print a sample config file and exit')
    parser.add_argument('--log-level', default=None,
                        help='Logging level (default: WARNING)')
    return parser


def run(config: RunConfig, session, sink: Optional[ConsoleSink] = None) -> Report:
    """Collect and print the report for one configuration."""
    locator = S3BucketLocator(session, config.default_region)
    metrics = CloudWatchMetricSource(session)
    collector = UsageCollector(locator, metrics, PriceTable.tokyo(), config.default_region)

    if sink is None:
        sink = ConsoleSink(verbose=config.verbose)

    bucket_names: List[str] = list(config.buckets) or locator.list_bucket_names()

    sink.write_header()
    return Aggregator(collector, config.max_workers, sink).run(bucket_names)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.generate_config:
        print(generate_sample_config(), end='')
        return 0

    try:
        config = load_config(args)
    except (ConfigError, FileNotFoundError) as e:
        parser.error(str(e))

    setup_logging(config.log_level, output_dir=config.output)

    try:
        session = get_session(config.profile)
    except BotoCoreError as e:
        logger.error(f"Could not create AWS session for profile {config.profile}: {e}")
        return 1

    report = run(config, session)

    if config.output:
        write_report(report, config.output, config.default_region)

    print_run_summary(report)
    return 0


if __name__ == '__main__':
    sys.exit(main())
