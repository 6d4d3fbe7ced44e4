import importlib
from collections.abc import MutableMapping, Sequence

from src.browser.batch_source import fetch_configured
from src.browser.columns import display_records, export_raw_projections
from src.browser.config import Settings
from src.browser.controller import MessageBrowser
from src.browser.grid import ColumnFilter, TableGrid
from src.browser.models import BrowseContext, ColumnDefinition
from src.dashboard.filters import (
    NUMBER_OPERATOR_LABELS,
    build_number_filter,
    build_text_filter,
    filters_changed,
)

BROWSER_KEY = "message_browser"
GRID_KEY = "message_browser_grid"
FETCHED_KEY = "message_browser_fetched"


def get_browser(
    session_state: MutableMapping[str, object], context: BrowseContext, settings: Settings
) -> MessageBrowser:
    browser = session_state.get(BROWSER_KEY)
    if not isinstance(browser, MessageBrowser):
        browser = MessageBrowser(
            context,
            strict_timestamps=settings.strict_timestamps,
            search_case_sensitive=settings.search_case_sensitive,
        )
        session_state[BROWSER_KEY] = browser
    elif browser.context != context:
        browser.set_context(context)
        session_state[FETCHED_KEY] = False
    return browser


def get_grid(session_state: MutableMapping[str, object]) -> TableGrid:
    grid = session_state.get(GRID_KEY)
    if not isinstance(grid, TableGrid):
        grid = TableGrid([], [])
        session_state[GRID_KEY] = grid
    return grid


def run_fetch(browser: MessageBrowser, settings: Settings) -> bool:
    token = browser.on_fetch_started()
    result = fetch_configured(settings, browser.context, browser.search)
    return browser.on_batch_fetched(result, token=token)


def _render_column_filters(st, columns: Sequence[ColumnDefinition]) -> dict[str, ColumnFilter | None]:
    requested: dict[str, ColumnFilter | None] = {}
    with st.expander("Column filters"):
        for column in columns:
            if column.filter_type == "number":
                operator = st.selectbox(
                    f"{column.header_name} filter",
                    list(NUMBER_OPERATOR_LABELS),
                    format_func=NUMBER_OPERATOR_LABELS.get,
                    key=f"mb_filter_op_{column.col_id}",
                )
                value = st.text_input(f"{column.header_name} value", key=f"mb_filter_{column.col_id}")
                upper = None
                if operator == "inRange":
                    upper = st.text_input(f"{column.header_name} upper", key=f"mb_filter_to_{column.col_id}")
                requested[column.col_id] = build_number_filter(operator, value, upper)
            else:
                value = st.text_input(f"{column.header_name} contains", key=f"mb_filter_{column.col_id}")
                requested[column.col_id] = build_text_filter(value)
    return requested


def apply_requested_filters(
    browser: MessageBrowser, grid: TableGrid, requested: dict[str, ColumnFilter | None]
) -> bool:
    if not filters_changed(grid.filter_model(), requested):
        return False
    for col_id, spec in requested.items():
        grid.set_filter(col_id, spec)
    browser.on_filter_changed()
    return True


def run_message_browser_app(settings: Settings, context: BrowseContext, configure_page: bool = True) -> None:
    st = importlib.import_module("streamlit")

    if configure_page:
        st.set_page_config(page_title="Message Browser", layout="wide")

    browser = get_browser(st.session_state, context, settings)
    st.title(browser.title)

    search = st.text_input("Search", value=browser.search, key="message_browser_search")
    browser.set_search(search)

    if st.button("Fetch messages") or not st.session_state.get(FETCHED_KEY):
        run_fetch(browser, settings)
        st.session_state[FETCHED_KEY] = True

    if browser.warning:
        st.warning(browser.warning)
    if browser.error:
        st.error(browser.error_message)

    columns = browser.column_definitions()
    grid = get_grid(st.session_state)
    grid.load(browser.visible_rows(), columns)
    browser.on_grid_ready(grid)

    apply_requested_filters(browser, grid, _render_column_filters(st, columns))

    visible_columns = grid.visible_columns()
    filtered = list(grid.filtered_rows())
    st.caption(f"{len(filtered)} of {len(browser.rows)} messages")

    if not filtered:
        st.info("No messages to display.")
        return

    st.dataframe(
        display_records(filtered, visible_columns),
        use_container_width=True,
        hide_index=True,
        column_order=[column.col_id for column in visible_columns],
        column_config={column.col_id: column.header_name for column in visible_columns},
    )
    st.download_button(
        "Export JSON",
        data=export_raw_projections(filtered),
        file_name="messages.json",
        mime="application/json",
    )
