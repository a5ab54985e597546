"""Command-line entry point for Inbox Sorter."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from inbox_sorter.core import AppSettings, configure_logging, load_app_settings
from inbox_sorter.core.errors import PipelineError
from inbox_sorter.core.models import EmailItem
from inbox_sorter.pipeline import build_pipeline


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Inbox Sorter email labeller")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "classify"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        default=None,
        help="JSON file with emails to classify (classify command only).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return an exit code."""
    command = args.command
    if command == "info":
        _print_info(settings)
        return 0
    if args.file is None:
        print("classify requires a JSON file argument", file=sys.stderr)
        return 2
    return _run_classify(settings, args.file)


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    sys.exit(execute(args, settings))


def _print_info(settings: AppSettings) -> None:
    print("Inbox Sorter is ready.")
    print(f"Google client configured: {_yes_no(settings.google.client_id)}")
    print(f"Google secret configured: {_yes_no(settings.google.client_secret)}")
    print(f"OpenAI key configured: {_yes_no(settings.llm.api_key)}")
    print(f"Model: {settings.llm.model}")
    print(
        "Classifier batches: "
        f"{settings.classifier.batch_size} per batch, "
        f"{settings.classifier.batch_delay_ms} ms apart"
    )
    print(f"Max messages per fetch: {settings.mailbox.max_results_cap}")


def _run_classify(settings: AppSettings, path: Path) -> int:
    try:
        emails = load_emails(path)
    except (OSError, ValueError) as exc:
        print(f"Could not read {path}: {exc}", file=sys.stderr)
        return 2

    pipeline = build_pipeline(settings)
    try:
        classifications = asyncio.run(pipeline.classify(emails))
    except PipelineError as exc:
        print(f"Classification failed: {exc.message}", file=sys.stderr)
        return 1

    output = {
        "classifications": {
            email_id: category.value for email_id, category in classifications.items()
        }
    }
    print(json.dumps(output, indent=2))
    return 0


def load_emails(path: Path) -> list[EmailItem]:
    """Read emails from ``{"emails": [...]}`` or a bare JSON list."""
    data: Any = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("emails", [])
    if not isinstance(data, list):
        raise ValueError("expected a list of emails")

    emails: list[EmailItem] = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("id"):
            raise ValueError("every email needs an 'id'")
        emails.append(
            EmailItem(
                id=str(entry["id"]),
                sender=entry.get("from"),
                subject=entry.get("subject"),
                snippet=entry.get("snippet"),
                body_text=entry.get("bodyText"),
                date=entry.get("date"),
            )
        )
    return emails


def _yes_no(value: str | None) -> str:
    return "yes" if value else "no"


if __name__ == "__main__":
    main()
