from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from pathlib import Path

import requests

from .config import Settings
from .models import BrowseContext, FetchResult

LOGGER = logging.getLogger(__name__)

HttpGet = Callable[..., requests.Response]


class BatchSourceError(Exception):
    pass


def _decode_batch(text: str) -> FetchResult:
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise BatchSourceError(f"batch is not valid JSON: {exc}") from exc
    if not isinstance(decoded, Mapping):
        raise BatchSourceError("batch is not a JSON object")
    return FetchResult.from_mapping(decoded)


def load_batch_file(path: str | Path) -> FetchResult:
    try:
        text = Path(path).read_text(encoding="utf-8")
        return _decode_batch(text)
    except OSError as exc:
        LOGGER.warning("failed to read batch file %s: %s", path, exc)
        return FetchResult(error=f"failed to read {path}: {exc}")
    except BatchSourceError as exc:
        LOGGER.warning("failed to decode batch file %s: %s", path, exc)
        return FetchResult(error=str(exc))


def context_params(context: BrowseContext, search: str = "") -> dict[str, str]:
    params: dict[str, str] = {}
    if context.topic is not None:
        params["topic"] = context.topic
    if context.partition is not None:
        params["partition"] = context.partition
    if search:
        params["search"] = search
    return params


def fetch_batch(
    url: str,
    params: Mapping[str, str] | None = None,
    timeout_seconds: float = 30,
    http_get: HttpGet = requests.get,
) -> FetchResult:
    try:
        response = http_get(url, params=dict(params or {}), timeout=timeout_seconds)
    except requests.RequestException as exc:
        LOGGER.warning("batch request to %s failed: %s", url, exc)
        return FetchResult(error=f"network_error: {exc}")
    if response.status_code != 200:
        return FetchResult(error=f"request failed with status {response.status_code}")
    try:
        return _decode_batch(response.text)
    except BatchSourceError as exc:
        LOGGER.warning("failed to decode batch from %s: %s", url, exc)
        return FetchResult(error=str(exc))


def fetch_configured(settings: Settings, context: BrowseContext, search: str = "") -> FetchResult:
    source = settings.require_source()
    if settings.source_url:
        return fetch_batch(source, context_params(context, search), settings.timeout_seconds)
    return load_batch_file(source)
