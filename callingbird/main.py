import argparse
import sys
from typing import List, Optional

from callingbird.api.client import CallingBirdClient
from callingbird.constants import DAY_LABELS, DAY_ORDER
from callingbird.errors import CallingBirdError
from callingbird.helper.availability_helper import working_days
from callingbird.settings import FileTokenStore, Settings, load_settings
from callingbird.utils.auth import is_authenticated, is_token_expired, token_email
from callingbird.utils.logging_config import CallingBirdLogger, get_main_logger


def build_client(settings: Settings, token_store: FileTokenStore) -> CallingBirdClient:
    return CallingBirdClient(
        base_url=settings.backend_url,
        token_provider=token_store,
        timeout=settings.request_timeout,
    )


def cmd_status(client: CallingBirdClient, token_store: FileTokenStore, args) -> int:
    token = token_store.get_token()
    if token:
        email = token_email(token) or "unknown"
        expired = " (expired)" if is_token_expired(token) else ""
        print(f"Signed in as {email}{expired}")
    else:
        print("Not signed in")

    status = client.fetch_company_setup_status(bypass_cache=True)
    if not status.needs_setup and not status.missing_fields:
        print("Company setup complete")
        return 0
    print("Company setup incomplete:" if status.needs_setup else "Company setup could not be fully checked:")
    for field in status.missing_fields:
        print(f"  - {field}")
    return 1 if status.needs_setup else 0


def cmd_staff(client: CallingBirdClient, token_store: FileTokenStore, args) -> int:
    staff_members = client.get_staff_members()
    if not staff_members:
        print("No staff members")
        return 0
    for staff in staff_members:
        days = ", ".join(DAY_LABELS[day] for day in working_days(staff.availability)) or "-"
        print(f"{staff.name} ({staff.role}): {days}")
    return 0


def cmd_hours(client: CallingBirdClient, token_store: FileTokenStore, args) -> int:
    week = client.get_company_hours()
    for day in DAY_ORDER:
        schedule = week[day]
        if schedule.is_working:
            block = schedule.blocks[0]
            print(f"{DAY_LABELS[day]:<10} {block.start_time} - {block.end_time}")
        else:
            print(f"{DAY_LABELS[day]:<10} closed")
    return 0


def cmd_login_token(client: CallingBirdClient, token_store: FileTokenStore, args) -> int:
    token_store.set_token(args.token)
    if not is_authenticated(token_store):
        print("Token stored, but it is expired or unreadable", file=sys.stderr)
        return 1
    print(f"Signed in as {token_email(args.token) or 'unknown'}")
    return 0


def cmd_logout(client: CallingBirdClient, token_store: FileTokenStore, args) -> int:
    token_store.remove_token()
    print("Signed out")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="callingbird", description="CallingBird dashboard command line")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show company setup status").set_defaults(func=cmd_status)
    subparsers.add_parser("staff", help="List staff members and their working days").set_defaults(func=cmd_staff)
    subparsers.add_parser("hours", help="Show company operating hours").set_defaults(func=cmd_hours)

    login = subparsers.add_parser("login-token", help="Store a session token")
    login.add_argument("token")
    login.set_defaults(func=cmd_login_token)

    subparsers.add_parser("logout", help="Remove the stored session token").set_defaults(func=cmd_logout)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    CallingBirdLogger.setup_logging(log_level=settings.log_level, log_file=settings.log_file, force=True)
    logger = get_main_logger()

    token_store = FileTokenStore(settings.token_file)
    client = build_client(settings, token_store)

    try:
        return args.func(client, token_store, args)
    except CallingBirdError as e:
        logger.error(f"Command {args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
