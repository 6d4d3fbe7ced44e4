from __future__ import annotations

import logging
from dataclasses import dataclass

from .columns import build_column_definitions, matches_search, timestamp_formatter
from .grid import GridSurface
from .models import BrowseContext, ColumnDefinition, FetchResult, Row, VisibilityState
from .projection import project_batch
from .schema import EMPTY_SCHEMA, ColumnSchema, aggregate_batch
from .visibility import apply_filter_visibility

LOGGER = logging.getLogger(__name__)

CROSS_TOPIC_TIMEOUT_WARNING = "Some messages may (or may not) be missing as one or more topics timed out"
SINGLE_TOPIC_TIMEOUT_WARNING = "Some messages may (or may not) be missing as the topic timed out"
FETCH_ERROR_PREFIX = "Failed to fetch data. Error: "


@dataclass(frozen=True)
class BatchView:
    rows: tuple[Row, ...] = ()
    schema: ColumnSchema = EMPTY_SCHEMA


def build_batch_view(result: FetchResult) -> BatchView:
    projected = project_batch(result.messages)
    rows = tuple(row for row, _ in projected)
    schema = aggregate_batch(parsed for _, parsed in projected)
    return BatchView(rows=rows, schema=schema)


def timeout_warning(context: BrowseContext) -> str:
    if context.cross_topic:
        return CROSS_TOPIC_TIMEOUT_WARNING
    return SINGLE_TOPIC_TIMEOUT_WARNING


class MessageBrowser:
    """Holds the current batch and reacts to fetch, filter and search events."""

    def __init__(
        self,
        context: BrowseContext,
        strict_timestamps: bool = False,
        search_case_sensitive: bool = True,
    ) -> None:
        self.context = context
        self.search = ""
        self.error = ""
        self.warning = ""
        self.visibility: VisibilityState | None = None
        self._strict_timestamps = strict_timestamps
        self._search_case_sensitive = search_case_sensitive
        self._view = BatchView()
        self._grid: GridSurface | None = None
        self._fetch_token = 0

    @property
    def title(self) -> str:
        return self.context.title

    @property
    def rows(self) -> tuple[Row, ...]:
        return self._view.rows

    @property
    def schema(self) -> ColumnSchema:
        return self._view.schema

    @property
    def error_message(self) -> str:
        if not self.error:
            return ""
        return f"{FETCH_ERROR_PREFIX}{self.error}"

    def set_context(self, context: BrowseContext) -> None:
        if context != self.context:
            self.context = context
            self._fetch_token += 1
            self._view = BatchView()
            self.error = ""
            self.warning = ""
            self.visibility = None

    def on_fetch_started(self) -> int:
        self.error = ""
        self.warning = ""
        self._fetch_token += 1
        return self._fetch_token

    def on_batch_fetched(self, result: FetchResult, token: int | None = None) -> bool:
        if token is not None and token != self._fetch_token:
            LOGGER.warning("discarding stale batch %s, latest fetch is %s", token, self._fetch_token)
            return False
        if result.error:
            LOGGER.warning("batch fetch failed: %s", result.error)
            self.error = result.error
            return False
        view = build_batch_view(result)
        self._view = view
        self.warning = timeout_warning(self.context) if result.has_timeout else ""
        LOGGER.info("loaded %d rows with %d payload columns", len(view.rows), len(view.schema))
        return True

    def on_grid_ready(self, grid: GridSurface) -> None:
        self._grid = grid

    def on_filter_changed(self) -> VisibilityState | None:
        if self._grid is None:
            return None
        state = apply_filter_visibility(self._grid)
        if state is not None:
            self.visibility = state
        return state

    def set_search(self, text: str) -> None:
        self.search = text

    def column_definitions(self) -> list[ColumnDefinition]:
        return build_column_definitions(
            self.context,
            self.schema,
            formatter=timestamp_formatter(strict=self._strict_timestamps),
        )

    def visible_rows(self) -> list[Row]:
        return [
            row
            for row in self.rows
            if matches_search(row, self.search, case_sensitive=self._search_case_sensitive)
        ]

    def raw_projections(self) -> list[dict[str, object]]:
        return [dict(row.raw_projection) for row in self.visible_rows()]
