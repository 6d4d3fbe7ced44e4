from __future__ import annotations

import logging
from collections.abc import Mapping

import streamlit as st

from src.browser.config import load_settings
from src.browser.models import BrowseContext
from src.dashboard.app import run_message_browser_app

LOGGER = logging.getLogger(__name__)


def _query_param_to_text(raw_value: object) -> str | None:
    if isinstance(raw_value, list):
        raw_value = raw_value[0] if raw_value else None
    text = str(raw_value or "").strip()
    return text or None


def resolve_context(query_params: Mapping[str, object]) -> tuple[BrowseContext, str | None]:
    topic = _query_param_to_text(query_params.get("topic"))
    partition = _query_param_to_text(query_params.get("partition"))
    if topic is None and partition is not None:
        return BrowseContext(), f"Partition '{partition}' ignored without a topic. Showing cross-topic search."
    return BrowseContext(topic=topic, partition=partition), None


def main() -> None:
    settings = load_settings()
    settings.require_source()

    context, warning_message = resolve_context(st.query_params)

    st.set_page_config(page_title="Message Browser", layout="wide")

    if warning_message:
        LOGGER.warning(warning_message)
        st.warning(warning_message)

    run_message_browser_app(settings, context, configure_page=False)


if __name__ == "__main__":
    main()
