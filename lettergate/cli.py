"""
Command-line administration and permission watch for LetterGate.

Usage:
    lettergate matrix
    lettergate toggle alice a
    lettergate add-subject alice --tokens "a b c"
    lettergate bulk-grant --subjects users.txt --tokens "a, b; c"
    lettergate bulk-delete --subjects users.txt --yes
    lettergate watch alice < input.txt

Command output goes to stdout, logs and errors to stderr. Domain errors exit
with status 1; so does a bulk command that recorded any failure, or a
destructive command the operator declined.
"""

import argparse
import sys
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from .core.config import settings
from .core.logging_config import setup_logging
from .core.schema import init_schema
from .database import engine, get_db
from .exceptions import LetterGateError
from .schemas.bulk import BulkReport
from .services import (
    BulkService,
    DirectoryService,
    GrantService,
    MatrixService,
    PermissionChange,
    PermissionSession,
)


def _confirm(prompt: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _read_subjects(path: str) -> str:
    """Subject list text from *path*, or stdin for '-'."""
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _print_report(report: BulkReport, as_json: bool) -> int:
    if as_json:
        print(report.model_dump_json(indent=2))
    else:
        print(report.summary())
        for failure in report.failures:
            print(f"  failed: {failure}")
    return 1 if report.has_failures else 0


# ---------------------------------------------------------------------------
# Command handlers: (args, db) -> exit code
# ---------------------------------------------------------------------------

def cmd_matrix(args: argparse.Namespace, db: Session) -> int:
    matrix = MatrixService(db).build()
    print(matrix.model_dump_json(indent=2) if args.json else matrix.render())
    return 0


def cmd_toggle(args: argparse.Namespace, db: Session) -> int:
    granted = GrantService(db).toggle(args.subject, args.token)
    print(f"{args.subject} {args.token}: {'granted' if granted else 'denied'}")
    return 0


def cmd_add_subject(args: argparse.Namespace, db: Session) -> int:
    tokens = DirectoryService(db).add_subject(args.name, args.tokens)
    print(f"Added subject {args.name.strip()} with tokens: {''.join(tokens) or '(none)'}")
    return 0


def cmd_rename_subject(args: argparse.Namespace, db: Session) -> int:
    DirectoryService(db).rename_subject(args.old, args.new)
    print(f"Renamed subject {args.old} to {args.new.strip()}")
    return 0


def cmd_delete_subject(args: argparse.Namespace, db: Session) -> int:
    if not _confirm(f"Delete subject {args.name} and all its permissions?", args.yes):
        print("Aborted.", file=sys.stderr)
        return 1
    DirectoryService(db).delete_subject(args.name)
    print(f"Deleted subject {args.name}")
    return 0


def cmd_add_token(args: argparse.Namespace, db: Session) -> int:
    DirectoryService(db).add_token(args.token)
    print(f"Added token {args.token}")
    return 0


def cmd_rename_token(args: argparse.Namespace, db: Session) -> int:
    DirectoryService(db).rename_token(args.old, args.new)
    print(f"Renamed token {args.old} to {args.new}")
    return 0


def cmd_delete_token(args: argparse.Namespace, db: Session) -> int:
    if not _confirm(f"Delete token {args.token} and revoke it from every subject?", args.yes):
        print("Aborted.", file=sys.stderr)
        return 1
    DirectoryService(db).delete_token(args.token)
    print(f"Deleted token {args.token}")
    return 0


def cmd_grant_all(args: argparse.Namespace, db: Session) -> int:
    count = DirectoryService(db).grant_all(args.name)
    print(f"Granted {count} new token(s) to {args.name}")
    return 0


def cmd_revoke_all(args: argparse.Namespace, db: Session) -> int:
    count = DirectoryService(db).revoke_all(args.name)
    print(f"Revoked {count} token(s) from {args.name}")
    return 0


def cmd_bulk_grant(args: argparse.Namespace, db: Session) -> int:
    report = BulkService(db).grant_or_create(_read_subjects(args.subjects), args.tokens)
    return _print_report(report, args.json)


def cmd_bulk_revoke(args: argparse.Namespace, db: Session) -> int:
    report = BulkService(db).revoke(_read_subjects(args.subjects), args.tokens)
    return _print_report(report, args.json)


def cmd_bulk_delete(args: argparse.Namespace, db: Session) -> int:
    subjects_text = _read_subjects(args.subjects)
    if not _confirm("Delete every listed subject and all their permissions?", args.yes):
        print("Aborted.", file=sys.stderr)
        return 1
    report = BulkService(db).delete(subjects_text)
    return _print_report(report, args.json)


def cmd_watch(args: argparse.Namespace) -> int:
    """Filter stdin line by line with the subject's live allow-set."""

    def on_change(change: PermissionChange) -> None:
        print(
            f"[permissions] added: {''.join(sorted(change.added)) or '-'} "
            f"removed: {''.join(sorted(change.removed)) or '-'} "
            f"now: {''.join(sorted(change.allowed)) or '-'}",
            file=sys.stderr,
        )

    interval = args.interval if args.interval is not None else settings.sync_poll_interval
    with PermissionSession(poll_interval=interval, on_change=on_change) as session:
        allowed = session.authenticate(args.name)
        print(f"[permissions] {args.name}: {''.join(sorted(allowed)) or '-'}", file=sys.stderr)
        try:
            for line in sys.stdin:
                sys.stdout.write(session.filter_text(line))
                sys.stdout.flush()
        except KeyboardInterrupt:
            pass
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lettergate",
        description="Administer which subjects may use which letters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Token lists are letters separated by spaces, ',' or ';' (e.g. "a b; c,d").
Subject files hold one name per line; use '-' to read them from stdin.
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("matrix", help="Show the subject x token matrix")
    p.add_argument("--json", action="store_true", help="Print the matrix as JSON")
    p.set_defaults(handler=cmd_matrix)

    p = sub.add_parser("toggle", help="Grant a token if absent, otherwise revoke it")
    p.add_argument("subject")
    p.add_argument("token")
    p.set_defaults(handler=cmd_toggle)

    p = sub.add_parser("add-subject", help="Create a subject, optionally with tokens")
    p.add_argument("name")
    p.add_argument("--tokens", default="", help="Tokens to grant (default: none)")
    p.set_defaults(handler=cmd_add_subject)

    p = sub.add_parser("rename-subject", help="Rename a subject")
    p.add_argument("old")
    p.add_argument("new")
    p.set_defaults(handler=cmd_rename_subject)

    p = sub.add_parser("delete-subject", help="Delete a subject and its grants")
    p.add_argument("name")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    p.set_defaults(handler=cmd_delete_subject)

    p = sub.add_parser("add-token", help="Create a token")
    p.add_argument("token")
    p.set_defaults(handler=cmd_add_token)

    p = sub.add_parser("rename-token", help="Change a token's letter; grants follow it")
    p.add_argument("old")
    p.add_argument("new")
    p.set_defaults(handler=cmd_rename_token)

    p = sub.add_parser("delete-token", help="Delete a token and revoke it everywhere")
    p.add_argument("token")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    p.set_defaults(handler=cmd_delete_token)

    p = sub.add_parser("grant-all", help="Grant every token to a subject")
    p.add_argument("name")
    p.set_defaults(handler=cmd_grant_all)

    p = sub.add_parser("revoke-all", help="Revoke every token from a subject")
    p.add_argument("name")
    p.set_defaults(handler=cmd_revoke_all)

    for command, handler, help_text in (
        ("bulk-grant", cmd_bulk_grant, "Grant tokens to many subjects, creating unknown ones"),
        ("bulk-revoke", cmd_bulk_revoke, "Revoke tokens from many subjects"),
    ):
        p = sub.add_parser(command, help=help_text)
        p.add_argument("--subjects", required=True, help="File with one subject per line, or '-'")
        p.add_argument("--tokens", required=True, help="Token list")
        p.add_argument("--json", action="store_true", help="Print the report as JSON")
        p.set_defaults(handler=handler)

    p = sub.add_parser("bulk-delete", help="Delete many subjects and their grants")
    p.add_argument("--subjects", required=True, help="File with one subject per line, or '-'")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    p.add_argument("--json", action="store_true", help="Print the report as JSON")
    p.set_defaults(handler=cmd_bulk_delete)

    p = sub.add_parser("watch", help="Filter stdin with a subject's live permissions")
    p.add_argument("name")
    p.add_argument(
        "--interval",
        type=float,
        default=None,
        help=f"Seconds between permission refreshes (default: {settings.sync_poll_interval})",
    )
    p.set_defaults(handler=cmd_watch, needs_db=False)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(settings.log_level, settings.log_format)

    handler: Callable[..., int] = args.handler
    try:
        init_schema(engine)
        if getattr(args, "needs_db", True):
            with get_db() as db:
                return handler(args, db)
        return handler(args)
    except LetterGateError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
