"""Main entry point for ReForma Workshop"""
import argparse
import sys
from datetime import datetime

from loguru import logger

from reforma.errors import ReformaError
from reforma.ledger_store import LedgerStore
from reforma.lifecycle import CloseConfirmation, JobLifecycleController
from reforma.live import LiveDashboard
from reforma.logging_config import configure_logging
from reforma.numbering import next_number_for
from reforma.report_generator import KpiReport


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Workshop job lifecycle and KPI tools')
    parser.add_argument('--data-dir', default='data', help='Local ledger directory (when not using Google Sheets)')
    parser.add_argument('--log-level', default=None, help='Log level (default: LOG_LEVEL env or INFO)')
    sub = parser.add_subparsers(dest='command', required=True)

    now = datetime.now()
    kpi = sub.add_parser('kpi', help='Print the KPI report for a month')
    kpi.add_argument('--month', '-m', type=int, default=now.month)
    kpi.add_argument('--year', '-y', type=int, default=now.year)

    close = sub.add_parser('close', help='Close a work order')
    close.add_argument('job_id')
    close.add_argument('--override', action='store_true',
                       help='Acknowledge closing a WO that has no posted cost')

    reopen = sub.add_parser('reopen', help='Reopen a closed work order')
    reopen.add_argument('job_id')
    reopen.add_argument('--role', required=True, help='Role of the acting user')

    number = sub.add_parser('next-number', help='Preview the next BE/WO number')
    number.add_argument('family', choices=['BE', 'WO'])
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    store = LedgerStore(data_dir=args.data_dir)
    settings = store.load_settings()

    if args.command == 'kpi':
        dashboard = LiveDashboard(store, settings, args.month, args.year)
        print(KpiReport(dashboard.snapshot).to_text())
        dashboard.close()
        return 0

    controller = JobLifecycleController(store, settings=settings)
    try:
        if args.command == 'next-number':
            print(next_number_for(args.family, controller.jobs, datetime.now().date()))
            return 0

        job = controller.find_job(args.job_id)
        if job is None:
            logger.error(f"Job {args.job_id} not found")
            return 1

        if args.command == 'close':
            confirmation = CloseConfirmation.OVERRIDE if args.override else CloseConfirmation.CONFIRM
            result = controller.close_job(job, confirmation)
        else:
            result = controller.reopen_job(job, args.role)
        return 0 if result is not None else 1
    except ReformaError as e:
        print(e.user_message, file=sys.stderr)
        return 1
    finally:
        controller.close()


if __name__ == '__main__':
    sys.exit(main())
