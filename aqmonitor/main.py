"""Main entry point for the Air Quality Monitor notifier."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from aqmonitor.accounts.service import AccountService
from aqmonitor.config.environment import EnvironmentConfig
from aqmonitor.config.exceptions import ConfigurationError
from aqmonitor.config.loader import load_config
from aqmonitor.config.models import AppConfig
from aqmonitor.logging import get_logger
from aqmonitor.logging.config import configure_logging
from aqmonitor.notifications.models import AlertDispatch
from aqmonitor.notifications.queue import DeliveryQueue
from aqmonitor.notifications.service import NotificationService
from aqmonitor.notifications.templates import TemplateRenderer
from aqmonitor.notifications.transport import LogTransport, SMTPTransport
from aqmonitor.persistence.database import close_database, get_session, init_database
from aqmonitor.persistence.exceptions import DirectoryError, UserNotFoundError
from aqmonitor.persistence.repositories import UserRepository

logger = get_logger(__name__, component="cli")

SHUTDOWN_TIMEOUT_SECONDS = 60.0


@dataclass
class Services:
    """Everything main() wires together, in shutdown order."""

    transport: object
    queue: DeliveryQueue
    notifications: NotificationService
    accounts: AccountService

    def shutdown(self, timeout: Optional[float] = SHUTDOWN_TIMEOUT_SECONDS) -> bool:
        """Drain the queue, then release the transport connection.

        Returns:
            True if every accepted message was attempted before the timeout
        """
        drained = self.queue.close(timeout=timeout)
        if not drained:
            logger.warning(
                f"Delivery queue still had {self.queue.pending_count} messages after {timeout}s",
                extra={"event": "service.shutdown.undrained"},
            )
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()
        return drained


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aqmonitor",
        description="Air Quality Monitor - evaluate readings and deliver user notifications",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log messages instead of sending them; SMTP settings are not required",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Validate configuration, database and mail server connectivity, then exit",
    )
    parser.add_argument(
        "--user-email",
        default=None,
        help="Email address of the user the reading is evaluated for",
    )
    parser.add_argument(
        "--aqi",
        type=float,
        default=None,
        help="Air Quality Index reading to evaluate (requires --user-email)",
    )
    return parser


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str], dry_run: bool
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > environment > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path, require_smtp=not dry_run)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_services(
    app_config: AppConfig, env_config: EnvironmentConfig, dry_run: bool = False
) -> Services:
    """Create the transport, delivery queue and services from configuration."""
    if dry_run:
        transport = LogTransport()
    else:
        transport = SMTPTransport(
            env_config,
            use_tls=app_config.email.use_tls,
            max_messages_per_connection=app_config.delivery.max_messages_per_connection,
            timeout=app_config.email.timeout,
        )

    queue = DeliveryQueue(
        transport,
        pacing_interval=app_config.delivery.pacing_interval_seconds,
        max_pending=app_config.delivery.max_pending,
    )
    notifications = NotificationService(
        queue, renderer=TemplateRenderer(signature=f"{env_config.smtp_sender_name} Team")
    )
    accounts = AccountService(notifications, preference_defaults=app_config.preferences)

    return Services(transport=transport, queue=queue, notifications=notifications, accounts=accounts)


def evaluate_reading(services: Services, user_email: str, aqi: float) -> AlertDispatch:
    """Run one reading for the user with the given email through the alert path.

    Raises:
        UserNotFoundError: If no user has this email
    """
    user = services.accounts.find_by_email(user_email)
    if user is None:
        raise UserNotFoundError(user_email)
    return services.accounts.record_reading(user.id, aqi)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Air Quality Monitor notifier.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.user_email is None) != (args.aqi is None):
        parser.error("--user-email and --aqi must be used together")
    if not args.check and args.user_email is None:
        parser.error("nothing to do: pass --check or --user-email with --aqi")

    services: Optional[Services] = None
    try:
        # Step 1: Load configuration (before logging for format detection)
        app_config, env_config = load_runtime_config(args.config, args.log_level, args.dry_run)

        # Step 2: Configure logging
        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=environment,
        )

        logger.info(
            "Air Quality Monitor starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "dry_run": args.dry_run,
            },
        )

        # Step 3: Initialize the user directory
        init_database(env_config.database_url)

        # Step 4: Wire transport, queue and services
        services = build_services(app_config, env_config, dry_run=args.dry_run)

        logger.info(
            "Services initialized",
            extra={
                "event": "service.initialized",
                "pacing_interval_ms": app_config.delivery.pacing_interval_ms,
                "max_pending": app_config.delivery.max_pending,
            },
        )

        # Step 5: Report the directory and check the mail server
        if args.check:
            with get_session() as session:
                user_count = len(UserRepository(session).list_all())
            print(f"User directory: {user_count} registered users")

        if not args.dry_run and (args.check or app_config.email.verify_on_startup):
            ready = services.transport.verify()
            if args.check:
                return 0 if ready else 1

        if args.check:
            logger.info("Configuration check passed", extra={"event": "service.check.passed"})
            return 0

        # Step 6: Evaluate the reading and wait for delivery
        dispatch = evaluate_reading(services, args.user_email, args.aqi)

        if not dispatch.queued:
            print(f"No alert sent: {dispatch.decision.suppressed_reason}")
            return 0

        outcome = dispatch.wait()
        if outcome.is_success():
            print(f"{dispatch.request.subject} sent to {dispatch.request.recipient_address}")
            return 0

        print(f"Delivery failed: {outcome.reason}", file=sys.stderr)
        return 1

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except DirectoryError as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(
            f"User directory error: {e}",
            extra={"event": "database.error", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1
    finally:
        if services is not None:
            services.shutdown()
        close_database()
        logger.info(
            "Air Quality Monitor stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )


if __name__ == "__main__":
    sys.exit(main())
