# ABOUTME: CLI entry point for the Continued Education subscription service.
# ABOUTME: Provides subcommands: serve, init-db, stats, export, notify, create-audience, test-email.

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from urllib.parse import urlencode

import structlog

from continued_education.config import get_settings


def configure_logging() -> None:
    """Configure structlog for console or JSON output."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )
    else:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
                structlog.processors.add_log_level,
                structlog.dev.ConsoleRenderer(colors=True),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
        )


def _build_service():
    """Wire a SubscriptionService from settings, as the web layer does per request."""
    from continued_education.contacts import build_contact_store
    from continued_education.email.renderer import EmailRenderer
    from continued_education.email.transport import EmailTransport
    from continued_education.services.dispatcher import NotificationDispatcher
    from continued_education.services.subscription_service import SubscriptionService

    settings = get_settings()
    store = build_contact_store(settings)
    dispatcher = NotificationDispatcher(
        store, EmailTransport(settings), EmailRenderer(settings), settings
    )
    return SubscriptionService(store, dispatcher, settings)


async def _close_db_if_used() -> None:
    from continued_education.db.session import close_db

    if get_settings().contact_backend == "database":
        await close_db()


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the web service with uvicorn."""
    import uvicorn

    uvicorn.run(
        "continued_education.web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


def cmd_init_db(_args: argparse.Namespace) -> int:
    """Create the subscriber tables (development; use alembic in production)."""
    from continued_education.db.session import close_db, init_db

    log = structlog.get_logger()

    async def run() -> None:
        try:
            await init_db()
        finally:
            await close_db()

    try:
        asyncio.run(run())
    except Exception:
        log.exception("cmd_init_db_failed")
        return 1

    log.info("cmd_init_db_complete")
    return 0


def cmd_stats(_args: argparse.Namespace) -> int:
    """Print subscriber counts."""

    async def run():
        try:
            return await _build_service().stats()
        finally:
            await _close_db_if_used()

    stats = asyncio.run(run())

    print(f"\n=== {get_settings().site_name} Subscribers ===\n")
    print(f"Total:        {stats.total}")
    print(f"Active:       {stats.active}")
    print(f"Unsubscribed: {stats.total - stats.active}")
    print()
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Export all subscribers as CSV to a file or stdout."""
    from continued_education.contacts.errors import StoreUnavailableError
    from continued_education.services.subscription_service import SubscriptionService

    log = structlog.get_logger()

    async def run() -> str:
        try:
            return await _build_service().export_csv()
        finally:
            await _close_db_if_used()

    try:
        content = asyncio.run(run())
    except StoreUnavailableError as e:
        log.error("cmd_export_failed", error=str(e))
        return 1

    if args.output == "-":
        sys.stdout.write(content + "\n")
        return 0

    output = Path(args.output or SubscriptionService.export_filename())
    output.write_text(content + "\n", encoding="utf-8")
    log.info("cmd_export_complete", path=str(output))
    return 0


def cmd_notify(args: argparse.Namespace) -> int:
    """Send the new-post notification for one post.

    Returns 1 if any recipient failed or notifications are disabled.
    """
    from continued_education.models import PostRef

    log = structlog.get_logger()
    post = PostRef(id=args.post_id, title=args.title, excerpt=args.excerpt or "")

    async def run():
        try:
            return await _build_service().notify_of_new_post(post)
        finally:
            await _close_db_if_used()

    result = asyncio.run(run())

    log.info(
        "cmd_notify_complete",
        post_id=post.id,
        success=result.success,
        sent_count=result.sent_count,
        mode=result.mode.value,
    )
    for error in result.errors:
        print(f"  ! {error}")
    return 0 if result.success else 1


def cmd_create_audience(args: argparse.Namespace) -> int:
    """Create a Resend audience and print its id."""
    from continued_education.email.transport import EmailTransport, EmailTransportError

    log = structlog.get_logger()

    try:
        audience_id = asyncio.run(EmailTransport().create_audience(args.name))
    except EmailTransportError as e:
        log.error("cmd_create_audience_failed", error=str(e))
        return 1

    print(f"\nAudience created: {audience_id}")
    print(f"Set RESEND_AUDIENCE_ID={audience_id} to broadcast to it.\n")
    return 0


def cmd_test_email(args: argparse.Namespace) -> int:
    """Send a sample new-post notification to one address."""
    from continued_education.email.renderer import EmailRenderer
    from continued_education.email.transport import EmailTransport, EmailTransportError
    from continued_education.models import PostRef

    log = structlog.get_logger()
    settings = get_settings()
    renderer = EmailRenderer(settings)
    post = PostRef(
        id="test-post",
        title="Test Notification",
        excerpt=f"This is a test email from {settings.site_name}.",
    )
    unsubscribe_url = f"{settings.base_url}/unsubscribe?{urlencode({'email': args.to})}"
    email = renderer.render_post_notification(post, unsubscribe_url)

    try:
        asyncio.run(
            EmailTransport(settings).send(args.to, email.subject, email.html, text=email.text)
        )
    except EmailTransportError as e:
        log.error("cmd_test_email_failed", to=args.to, error=str(e))
        return 1

    log.info("cmd_test_email_sent", to=args.to)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="continued_education",
        description="Continued Education - blog email subscriptions and new-post notifications",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the web service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Reload on code changes (development)"
    )

    # init-db command
    subparsers.add_parser("init-db", help="Create subscriber tables")

    # stats command
    subparsers.add_parser("stats", help="Show subscriber counts")

    # export command
    export_parser = subparsers.add_parser("export", help="Export subscribers as CSV")
    export_parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output path, '-' for stdout (default: subscribers-<date>.csv)",
    )

    # notify command
    notify_parser = subparsers.add_parser(
        "notify",
        help="Notify subscribers about a published post",
    )
    notify_parser.add_argument("--post-id", required=True, help="Post identifier")
    notify_parser.add_argument("--title", required=True, help="Post title")
    notify_parser.add_argument("--excerpt", default="", help="Short post excerpt")

    # create-audience command
    audience_parser = subparsers.add_parser(
        "create-audience",
        help="Create a Resend audience for broadcast delivery",
    )
    audience_parser.add_argument("name", help="Audience name")

    # test-email command
    test_parser = subparsers.add_parser("test-email", help="Send a sample notification")
    test_parser.add_argument("to", help="Recipient address")

    return parser


def main() -> int:
    """Main entry point."""
    configure_logging()

    parser = create_parser()
    args = parser.parse_args()

    commands = {
        "serve": cmd_serve,
        "init-db": cmd_init_db,
        "stats": cmd_stats,
        "export": cmd_export,
        "notify": cmd_notify,
        "create-audience": cmd_create_audience,
        "test-email": cmd_test_email,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
