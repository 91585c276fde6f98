#!/usr/bin/env python3
"""Sample alert harness for end-to-end validation.

Registers a demo user in a throwaway database, replays a series of AQI
readings through the alert path and prints what was decided and delivered.
Messages go to the dry-run transport, so no mail server is needed.

Usage:
    python scripts/run_sample_alerts.py

    # Custom readings and cooldown
    python scripts/run_sample_alerts.py --readings 40 75 130 20 --cooldown 30m --step 20m

    # Keep the database for inspection
    python scripts/run_sample_alerts.py --database /tmp/aqmonitor_sample.db
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from aqmonitor.config.duration import parse_duration
from aqmonitor.config.environment import EnvironmentConfig
from aqmonitor.config.loader import parse_app_config
from aqmonitor.logging.config import configure_logging
from aqmonitor.main import build_services
from aqmonitor.persistence.database import close_database, init_database
from aqmonitor.utils.timestamps import format_for_display, utc_now


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_summary_table(rows):
    """Print one line per reading: time, reading, decision, delivery."""
    print_header("Alert Summary")

    headers = ("Time", "AQI", "Decision", "Delivery")
    widths = [max(len(str(row[i])) for row in rows + [headers]) for i in range(len(headers))]

    print("┌" + "┬".join("─" * (w + 2) for w in widths) + "┐")
    print("│" + "│".join(f" {h:<{w}} " for h, w in zip(headers, widths)) + "│")
    print("├" + "┼".join("─" * (w + 2) for w in widths) + "┤")
    for row in rows:
        print("│" + "│".join(f" {str(v):<{w}} " for v, w in zip(row, widths)) + "│")
    print("└" + "┴".join("─" * (w + 2) for w in widths) + "┘")


def main():
    """Main entry point for the sample alert harness."""
    parser = argparse.ArgumentParser(
        description="Replay sample AQI readings through the alert path",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--readings",
        type=float,
        nargs="+",
        default=[42, 45, 75, 130, 150, 30],
        help="AQI readings to replay, in order",
    )
    parser.add_argument("--cooldown", default="1h", help="Alert cooldown (default: 1h)")
    parser.add_argument(
        "--step", default="30m", help="Simulated time between readings (default: 30m)"
    )
    parser.add_argument(
        "--database",
        type=Path,
        default=None,
        help="Path to SQLite database (default: in-memory)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)",
    )

    args = parser.parse_args()

    print_header("Air Quality Monitor - Sample Alert Harness")

    try:
        step = timedelta(milliseconds=parse_duration(args.step))
        app_config = parse_app_config(
            {
                "delivery": {"pacing_interval": "10ms"},
                "preferences": {"cooldown": args.cooldown},
            }
        )
        env_config = EnvironmentConfig(smtp_host=None, smtp_port=None, log_level=args.log_level)

        configure_logging(
            level=args.log_level,
            format_type=app_config.logging.format,
            environment="validation",
        )

        database_url = (
            f"sqlite:///{args.database.absolute()}" if args.database else "sqlite:///:memory:"
        )
        init_database(database_url)
        print(f"💾 Database: {database_url}")

        services = build_services(app_config, env_config, dry_run=True)

        clock_value = [utc_now()]
        services.accounts.clock = lambda: clock_value[0]

        registered = services.accounts.register_user("demo", "demo@example.com", "Demo User")
        user = registered.user
        print(f"👤 Registered {user.username} <{user.email}> (cooldown {args.cooldown})")

        rows = []
        for reading in args.readings:
            dispatch = services.accounts.record_reading(user.id, reading)
            if dispatch.queued:
                outcome = dispatch.wait()
                decision = f"fire {dispatch.decision.kind.value}"
                delivery = "sent" if outcome.is_success() else f"failed: {outcome.reason}"
            else:
                decision = f"suppressed ({dispatch.decision.suppressed_reason})"
                delivery = "-"
            rows.append((format_for_display(clock_value[0]), reading, decision, delivery))
            clock_value[0] += step

        services.shutdown()
        print_summary_table(rows)

        print_header("Messages Delivered (dry run)")
        for address, subject, _ in services.transport.sent:
            print(f"  {subject} -> {address}")

        close_database()
        return 0

    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
