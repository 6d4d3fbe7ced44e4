import argparse
import json
import logging
from typing import Optional

from .batch_source import context_params, fetch_batch, fetch_configured, load_batch_file
from .columns import display_records
from .config import Settings, load_settings
from .controller import MessageBrowser
from .models import BrowseContext, FetchResult


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    _ = parser.add_argument("--batch")
    _ = parser.add_argument("--url")
    _ = parser.add_argument("--topic")
    _ = parser.add_argument("--partition")
    _ = parser.add_argument("--search", default="")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="message-browser")
    subparsers = parser.add_subparsers(dest="command", required=True)

    columns = subparsers.add_parser("columns")
    _add_source_arguments(columns)

    rows = subparsers.add_parser("rows")
    _add_source_arguments(rows)
    _ = rows.add_argument("--limit", type=int, default=50)

    export = subparsers.add_parser("export")
    _add_source_arguments(export)

    return parser


def _fetch(
    settings: Settings,
    context: BrowseContext,
    batch: Optional[str],
    url: Optional[str],
    search: str,
) -> FetchResult:
    if batch:
        return load_batch_file(batch)
    if url:
        return fetch_batch(url, context_params(context, search), settings.timeout_seconds)
    return fetch_configured(settings, context, search)


def load_browser(
    settings: Settings,
    topic: Optional[str] = None,
    partition: Optional[str] = None,
    batch: Optional[str] = None,
    url: Optional[str] = None,
    search: str = "",
) -> MessageBrowser:
    context = BrowseContext(topic=topic, partition=partition)
    browser = MessageBrowser(
        context,
        strict_timestamps=settings.strict_timestamps,
        search_case_sensitive=settings.search_case_sensitive,
    )
    token = browser.on_fetch_started()
    browser.on_batch_fetched(_fetch(settings, context, batch, url, search), token=token)
    browser.set_search(search)
    return browser


def columns_command(browser: MessageBrowser) -> list[dict[str, object]]:
    return [
        {
            "header_name": column.header_name,
            "id": column.col_id,
            "field": column.field,
            "filter": column.filter_type,
            "fixed": column.fixed,
        }
        for column in browser.column_definitions()
    ]


def rows_command(browser: MessageBrowser, limit: int = 50) -> list[dict[str, object]]:
    return display_records(browser.visible_rows()[:limit], browser.column_definitions())


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    logging.basicConfig(level=settings.log_level)

    browser = load_browser(
        settings,
        topic=args.topic,
        partition=args.partition,
        batch=args.batch,
        url=args.url,
        search=args.search,
    )
    if browser.error:
        print(json.dumps({"error": browser.error_message}))
        return 2
    if browser.warning:
        logging.getLogger(__name__).warning(browser.warning)

    if args.command == "columns":
        print(json.dumps(columns_command(browser)))
        return 0

    if args.command == "rows":
        print(json.dumps(rows_command(browser, limit=args.limit), default=str))
        return 0

    if args.command == "export":
        print(json.dumps(browser.raw_projections(), default=str))
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
