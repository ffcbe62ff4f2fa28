import argparse
import logging
import sys
from datetime import datetime

from academy.adapters.sqlite.migrator import SQLiteMigrator
from academy.api import deps
from academy.app_shell.config import ConfigurationError, validate_ops_rules
from academy.components.auth import AuthService
from academy.components.certificates import CertificateService
from academy.components.subscriptions import SubscriptionService
from academy.rules.models import Rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def load_config() -> tuple[deps.Settings, Rules]:
    settings = deps.get_settings()
    if not settings.rules_path.exists():
        logger.error("Rules file %s not found.", settings.rules_path)
        sys.exit(1)
    rules = deps.get_rules()
    try:
        validate_ops_rules(rules, settings.data_dir)
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)
    return settings, rules


def build_auth_service(settings: deps.Settings, rules: Rules) -> AuthService:
    notifier = deps.get_notifier(deps.get_email_adapter(settings), settings)
    return deps.get_auth_service(
        deps.get_user_repo(settings),
        deps.get_otp_repo(settings),
        deps.get_auth_adapter(rules),
        notifier,
        deps.get_clock(),
        rules,
    )


def build_subscription_service(settings: deps.Settings, rules: Rules) -> SubscriptionService:
    clock = deps.get_clock()
    notifier = deps.get_notifier(deps.get_email_adapter(settings), settings)
    orders = deps.get_order_repo(settings)
    coupons = deps.get_coupon_service(deps.get_coupon_repo(settings), orders, clock, rules)
    return deps.get_subscription_service(
        deps.get_plan_repo(settings),
        deps.get_subscription_repo(settings),
        orders,
        coupons,
        deps.get_payment_gateway(settings),
        notifier,
        clock,
        rules,
    )


def build_certificate_service(settings: deps.Settings, rules: Rules) -> CertificateService:
    return deps.get_certificate_service(
        deps.get_certificate_repo(settings),
        deps.get_template_repo(settings),
        deps.get_user_repo(settings),
        deps.get_catalog_repo(settings),
        deps.get_enrollment_repo(settings),
        deps.get_certificate_renderer(),
        deps.get_file_store(settings),
        deps.get_notifier(deps.get_email_adapter(settings), settings),
        deps.get_clock(),
        rules,
        settings,
    )


def handle_migrate(settings: deps.Settings) -> None:
    applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
    if applied:
        print(f"Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        print("Database is up to date.")


def handle_create_admin(settings: deps.Settings, rules: Rules, args: argparse.Namespace) -> None:
    user, errors = build_auth_service(settings, rules).create_admin(
        args.name, args.email, args.password
    )
    if errors or user is None:
        for err in errors:
            logger.error("%s", err.message)
        sys.exit(1)
    print(f"Admin ready: {user.email} ({user.id})")


def handle_expire(settings: deps.Settings, rules: Rules) -> None:
    count = build_subscription_service(settings, rules).expire_due()
    print(f"Expired {count} subscription(s).")


def handle_webinar_certificates(
    settings: deps.Settings, rules: Rules, args: argparse.Namespace
) -> None:
    count = build_certificate_service(settings, rules).process_webinar_completions(args.before)
    print(f"Issued {count} webinar certificate(s).")


def handle_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("academy.api.main:app", host=args.host, port=args.port, reload=args.reload)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="academy", description="Shrestha Academy CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")

    admin_parser = subparsers.add_parser("create-admin", help="Create or promote an admin user")
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--name", default="Admin")
    admin_parser.add_argument("--password", required=True)

    subparsers.add_parser("expire-subscriptions", help="Expire subscriptions past their end date")
    webinar_parser = subparsers.add_parser(
        "process-webinar-certificates", help="Issue certificates for finished webinars"
    )
    webinar_parser.add_argument(
        "--before",
        type=datetime.fromisoformat,
        default=None,
        help="ISO timestamp cut-off (default: now)",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true")

    args = parser.parse_args(argv)

    if args.command == "serve":
        handle_serve(args)
        return

    settings, rules = load_config()
    if args.command == "migrate":
        handle_migrate(settings)
        return

    # Everything below needs the schema in place
    SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
    if args.command == "create-admin":
        handle_create_admin(settings, rules, args)
    elif args.command == "expire-subscriptions":
        handle_expire(settings, rules)
    elif args.command == "process-webinar-certificates":
        handle_webinar_certificates(settings, rules, args)


if __name__ == "__main__":
    main()
