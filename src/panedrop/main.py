"""panedrop entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from panedrop.browser import DualPaneBrowser
from panedrop.capabilities import PaneError
from panedrop.pane import Pane
from panedrop.protocols import ConnectionInfo, HostKeyPolicy, Protocol
from panedrop.session import Session
from panedrop.settings import Settings, load_settings

logger = logging.getLogger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="panedrop", description="Move files between a local and a remote directory"
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--host", help="Remote server to connect to")
    target.add_argument(
        "--mirror", metavar="DIR", help="Use a second local directory instead of a server"
    )
    parser.add_argument(
        "--protocol",
        choices=[p.value for p in Protocol],
        default=settings.connection.protocol,
    )
    parser.add_argument("--port", type=int, default=0, help="0 uses the protocol default")
    parser.add_argument("-u", "--user", default="anonymous")
    parser.add_argument("--password", default=os.environ.get("PANEDROP_PASSWORD", ""))
    parser.add_argument("--key", default="", help="Private key file (SFTP)")
    parser.add_argument(
        "--strict-host-keys", action="store_true", help="Reject unknown SSH host keys"
    )
    parser.add_argument("--local", default=os.getcwd(), help="Local directory")
    parser.add_argument("--remote", default="/", help="Remote directory")
    parser.add_argument("-v", "--verbose", action="count", default=0)

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("list", help="Show both directories")
    upload = commands.add_parser("upload", help="Copy local entries to the remote directory")
    upload.add_argument("names", nargs="+")
    download = commands.add_parser("download", help="Copy remote entries to the local directory")
    download.add_argument("names", nargs="+")
    delete = commands.add_parser("delete", help="Delete entries on one side")
    delete.add_argument("side", choices=["local", "remote"])
    delete.add_argument("names", nargs="+")
    return parser


def _connection_info(args: argparse.Namespace, settings: Settings) -> ConnectionInfo:
    return ConnectionInfo(
        protocol=Protocol(args.protocol),
        host=args.host,
        port=args.port,
        username=args.user,
        password=args.password,
        key_path=args.key,
        timeout=settings.connection.timeout,
        passive_mode=settings.connection.passive_mode,
        host_key_policy=HostKeyPolicy.STRICT if args.strict_host_keys else HostKeyPolicy.AUTO_ADD,
    )


def format_pane(pane: Pane) -> str:
    lines = [f"{pane.label}:{pane.location}"]
    for entry in pane.entries:
        lines.append(f"{entry.kind.label} {entry.display_size:>12}  {entry.name}")
    return "\n".join(lines)


def _select(pane: Pane, names: list[str]) -> None:
    for name in names:
        pane.select(name)


def run_command(args: argparse.Namespace, session: Session) -> None:
    browser = DualPaneBrowser(session)
    if args.command == "list":
        print(format_pane(session.local))
        print()
        print(format_pane(session.remote))
    elif args.command == "upload":
        _select(browser.focused, args.names)
        browser.transfer()
        print(f"Uploaded {len(args.names)} entries to {session.remote.location}")
    elif args.command == "download":
        browser.switch()
        _select(browser.focused, args.names)
        browser.transfer()
        print(f"Downloaded {len(args.names)} entries to {session.local.location}")
    elif args.command == "delete":
        if args.side == "remote":
            browser.switch()
        _select(browser.focused, args.names)
        browser.delete()
        print(f"Deleted {len(args.names)} entries from {browser.focused.location}")


def main(argv: list[str] | None = None) -> None:
    """Launch panedrop."""
    settings = load_settings()
    args = build_parser(settings).parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    local_dir = os.path.abspath(args.local)
    try:
        if args.mirror:
            session = Session.local_pair(local_dir, os.path.abspath(args.mirror), settings)
        else:
            info = _connection_info(args, settings)
            session = Session.open(info, local_dir, args.remote, settings)
    except (PaneError, ConnectionError, ValueError) as e:
        print(f"Could not open session: {e}", file=sys.stderr)
        sys.exit(1)

    with session:
        try:
            run_command(args, session)
        except KeyError as e:
            print(e.args[0], file=sys.stderr)
            sys.exit(1)
        except PaneError as e:
            print(str(e), file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
