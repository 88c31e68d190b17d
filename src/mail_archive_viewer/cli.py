"""Command-line interface for Mail Archive Viewer.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import structlog

from mail_archive_viewer import __version__
from mail_archive_viewer.config import get_settings
from mail_archive_viewer.exceptions import ConfigurationError, MailArchiveError, ValidationError
from mail_archive_viewer.importer import BulkLoader, ImportProgress
from mail_archive_viewer.query import QueryEngine
from mail_archive_viewer.store import MailStoreRepository
from mail_archive_viewer.utils import display_sender, format_file_size, split_address

logger = structlog.get_logger()


def _add_db_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite store (default: settings store_db_path)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mail-archive", description="Mail Archive Viewer")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Replace the store with a ZIP export")
    import_parser.add_argument("archive", type=Path, help="Path to the .zip export")
    import_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print progress while importing",
    )
    _add_db_argument(import_parser)

    folders_parser = subparsers.add_parser("folders", help="List imported folders")
    _add_db_argument(folders_parser)

    messages_parser = subparsers.add_parser("messages", help="List the messages of a folder")
    messages_parser.add_argument("folder", help="Folder id (alias)")
    messages_parser.add_argument(
        "--query",
        "-q",
        default="",
        help="Filter: from:, to:, subject:, attachments: or free text",
    )
    messages_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Max results (default: settings message_list_limit)",
    )
    _add_db_argument(messages_parser)

    show_parser = subparsers.add_parser("show", help="Show a message and mark it read")
    show_parser.add_argument("message_id", help="Message id")
    show_parser.add_argument("--html", action="store_true", help="Print the HTML body instead of text")
    _add_db_argument(show_parser)

    attachment_parser = subparsers.add_parser("attachment", help="Save an attachment blob to a file")
    attachment_parser.add_argument("blob_id", help="Attachment blob id")
    attachment_parser.add_argument("--output", "-o", type=Path, required=True, help="Destination file")
    _add_db_argument(attachment_parser)

    stats_parser = subparsers.add_parser("stats", help="Show store contents")
    _add_db_argument(stats_parser)

    clear_parser = subparsers.add_parser("clear", help="Remove all imported data")
    _add_db_argument(clear_parser)

    return parser


def _open_store(args: argparse.Namespace) -> MailStoreRepository:
    settings = get_settings()
    db_path: Path = args.db or settings.store_db_path
    repo = MailStoreRepository(db_path)
    repo.initialize()
    return repo


def _print_progress(progress: ImportProgress) -> None:
    print(
        f"\rImporting... {progress.percent:5.1f}% "
        f"({progress.completed}/{progress.total}, {progress.ops_per_second:.1f} ops/s)",
        end="",
        file=sys.stderr,
        flush=True,
    )


def _cmd_import(args: argparse.Namespace) -> int:
    archive: Path = args.archive
    if archive.suffix.lower() != ".zip":
        raise ValidationError(f"Not a ZIP export: {archive}")
    if not archive.is_file():
        raise ConfigurationError(f"Archive not found: {archive}")

    repo = _open_store(args)
    loader = BulkLoader(repo, get_settings())
    summary = loader.import_archive(archive, on_progress=None if args.quiet else _print_progress)
    if not args.quiet:
        print(file=sys.stderr)

    print(
        f"Imported {summary.folders} folders, {summary.messages} messages and "
        f"{summary.attachments} attachments into {repo.db_path} "
        f"in {summary.elapsed_seconds:.1f}s"
    )
    if summary.failed_attachments:
        print(f"{len(summary.failed_attachments)} attachment(s) could not be imported:")
        for blob_id in summary.failed_attachments:
            print(f"- {blob_id}")
    return 0


def _cmd_folders(args: argparse.Namespace) -> int:
    repo = _open_store(args)
    folders = repo.list_folders()
    if not folders:
        print("No folders imported")
        return 0
    for folder in folders:
        print(f"{folder.id}\t{folder.display_name}\t{folder.email_count} messages")
    return 0


def _cmd_messages(args: argparse.Namespace) -> int:
    settings = get_settings()
    repo = _open_store(args)
    if repo.get_folder(args.folder) is None:
        print(f"Unknown folder: {args.folder}", file=sys.stderr)
        return 1

    limit: int = args.limit if args.limit is not None else settings.message_list_limit
    results = QueryEngine(repo).search(args.folder, args.query)
    print(f"Emails ({len(results)})")
    for m in results[:limit]:
        state = "READ" if m.is_read else "UNREAD"
        clip = "@" if m.has_attachments else " "
        print(f"{state}\t{clip}\t{m.date or '(no date)'}\t{m.id}\t{display_sender(m.sender)}\t{m.subject}")
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    repo = _open_store(args)
    message = repo.get_message(args.message_id)
    if message is None:
        print(f"Unknown message: {args.message_id}", file=sys.stderr)
        return 1

    if not message.is_read:
        repo.set_read_flag(message.id, True)

    name, address = split_address(message.sender)
    print(f"Subject: {message.subject or '(no subject)'}")
    print(f"From: {name} <{address}>" if name != address else f"From: {address}")
    print(f"To: {message.recipient}")
    if message.cc:
        print(f"Cc: {message.cc}")
    if message.bcc:
        print(f"Bcc: {message.bcc}")
    print(f"Date: {message.date}")

    if message.attachments:
        print(f"Attachments ({len(message.attachments)}):")
        for a in message.attachments:
            available = "" if repo.has_attachment(a.guid) else " [missing]"
            mime = a.mime_type or "application/octet-stream"
            print(f"- {a.file_name} ({format_file_size(a.size)} • {mime}) id={a.guid}{available}")

    print()
    print(message.html_body if args.html else message.text_body)
    return 0


def _cmd_attachment(args: argparse.Namespace) -> int:
    repo = _open_store(args)
    data = repo.get_attachment(args.blob_id)
    if data is None:
        print(f"Unknown attachment: {args.blob_id}", file=sys.stderr)
        return 1
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(data)
    print(f"Wrote {format_file_size(len(data))} to {args.output}")
    return 0


def _cmd_stats(args: argparse.Namespace) -> int:
    repo = _open_store(args)
    stats = repo.overall_stats()
    print(f"Folders: {stats.folders}")
    print(f"Messages: {stats.messages}")
    print(f"Unread messages: {stats.unread_messages}")
    print(f"Attachments: {stats.attachments} ({format_file_size(stats.attachment_bytes)})")

    manifest = repo.get_manifest()
    if manifest is not None:
        print(
            f"\nExport of {manifest.export_date or '(unknown date)'}: "
            f"{manifest.total_folders} folders, {manifest.total_emails} emails, "
            f"{manifest.total_attachments} attachments declared"
        )
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    repo = _open_store(args)
    repo.clear_all()
    print(f"Cleared {repo.db_path}")
    return 0


_COMMANDS = {
    "import": _cmd_import,
    "folders": _cmd_folders,
    "messages": _cmd_messages,
    "show": _cmd_show,
    "attachment": _cmd_attachment,
    "stats": _cmd_stats,
    "clear": _cmd_clear,
}


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Mail Archive Viewer CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()

    # Configure logging; stdout is reserved for command output.
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )

    logger.debug("mail_archive_viewer_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    command = _COMMANDS.get(parsed.command)
    if command is None:
        logger.error("unknown_command", command=parsed.command)
        return 2

    try:
        return command(parsed)
    except MailArchiveError as exc:
        logger.error("command_failed", command=parsed.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
