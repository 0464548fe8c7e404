"""
Command line entrypoint.

Opens a ticket view with settings from the environment and prints messages
as they arrive until interrupted.
"""

import argparse
import asyncio
import os
import sys
from typing import Optional, Sequence

from helpdesk_sync.client import HelpdeskClient
from helpdesk_sync.config.settings import Settings
from helpdesk_sync.models.session import Role, SessionContext
from helpdesk_sync.services.message_sync import ThreadUpdate
from helpdesk_sync.utils.error_handling import HelpdeskError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="helpdesk-sync")
    sub = parser.add_subparsers(dest="command", required=True)

    watch = sub.add_parser("watch", help="Follow a ticket's message thread")
    watch.add_argument("ticket_id", type=int)
    watch.add_argument(
        "--token",
        default=os.environ.get("HELPDESK_TOKEN"),
        help="Bearer token (defaults to $HELPDESK_TOKEN)",
    )
    watch.add_argument(
        "--role",
        choices=[role.value for role in Role],
        default=os.environ.get("HELPDESK_ROLE", Role.REQUESTER.value),
    )
    watch.add_argument("--user-id", type=int, default=None)
    return parser


def _print_update(update: ThreadUpdate) -> None:
    new_ids = set(update.new_ids)
    for message in update.messages:
        if message.id in new_ids:
            stamp = message.sent_at.isoformat(timespec="seconds")
            print(f"[{stamp}] {message.author_name or message.author_id}: {message.body}")


async def watch(client: HelpdeskClient, ticket_id: int) -> None:
    """Follow one ticket until cancelled."""
    async with client.ticket_view(ticket_id) as view:
        ticket = view.ticket
        print(f"#{ticket.id} {ticket.title} [{ticket.status.label}]")
        view.thread.subscribe(_print_update)
        await asyncio.Event().wait()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments and run the requested command."""
    args = build_parser().parse_args(argv)
    if not args.token:
        print("A bearer token is required (--token or HELPDESK_TOKEN)", file=sys.stderr)
        return 2

    settings = Settings.from_environment()
    session = SessionContext(
        base_url=settings.api_url,
        token=args.token,
        role=Role(args.role),
        user_id=args.user_id,
    )
    client = HelpdeskClient(session, settings)
    try:
        asyncio.run(watch(client, args.ticket_id))
    except KeyboardInterrupt:
        return 130
    except HelpdeskError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
