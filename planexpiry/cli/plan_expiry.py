# planexpiry/cli/plan_expiry.py
"""
CLI commands for the free plan expiry jobs.

Usage:
    python -m planexpiry.cli.plan_expiry run
    python -m planexpiry.cli.plan_expiry run --dry-run
    python -m planexpiry.cli.plan_expiry run --json
    python -m planexpiry.cli.plan_expiry preview
"""

import argparse
import json

from dotenv import load_dotenv

load_dotenv()


def _print_job(result):
    print(f"[{result.job}]{' (aborted)' if result.aborted else ''}")
    print(f"  Candidates: {result.processed}")
    print(f"  Transitioned: {result.transitioned}")
    print(f"  Skipped: {result.skipped}")
    print(f"  Emails sent: {result.emails_sent}")
    print(f"  Errors: {result.failed}")

    if result.errors:
        for error in result.errors:
            print(f"    - {error}")


def cmd_run(args):
    """Run the warning job and then the expiry job."""
    from planexpiry.config import get_settings
    from planexpiry.logging_config import configure_logging
    from planexpiry.services.expiry import run_from_settings

    settings = get_settings()
    configure_logging(json_format=settings.LOG_FORMAT == "json", level=settings.LOG_LEVEL)

    summary = run_from_settings(settings, dry_run=args.dry_run)

    if args.json:
        print(json.dumps(summary.to_response()))
        return

    print(f"\n{'DRY RUN - ' if args.dry_run else ''}Free plan expiry run\n")
    _print_job(summary.warning)
    _print_job(summary.expiry)
    print(f"\nWarned: {summary.warned}")
    print(f"Expired: {summary.expired}")
    print(f"Errors: {summary.errors}")
    print()


def cmd_preview(args):
    """Dry run: count what a run would warn and expire."""
    args.dry_run = True
    cmd_run(args)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Free Plan Expiry CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run both jobs
  python -m planexpiry.cli.plan_expiry run

  # Preview without sending email or writing
  python -m planexpiry.cli.plan_expiry preview

  # Print the invocation response as JSON
  python -m planexpiry.cli.plan_expiry run --json
        """,
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run warning and expiry jobs")
    run_parser.add_argument("--dry-run", action="store_true", help="Count candidates only")
    run_parser.add_argument("--json", action="store_true", help="Print the JSON summary")
    run_parser.set_defaults(func=cmd_run)

    preview_parser = subparsers.add_parser("preview", help="Dry run of both jobs")
    preview_parser.add_argument("--json", action="store_true", help="Print the JSON summary")
    preview_parser.set_defaults(func=cmd_preview)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
