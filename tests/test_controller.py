import importlib
import logging

controller = importlib.import_module("src.browser.controller")
grid_module = importlib.import_module("src.browser.grid")
models = importlib.import_module("src.browser.models")


def _batch(*payloads, has_timeout=False):
    return models.FetchResult.from_mapping(
        {
            "hasTimeout": has_timeout,
            "messages": [
                {
                    "message": {"timestamp": 1000 + index, "offset": str(index)},
                    "value": payload,
                    "key": f"key-{index}",
                    "topic": "orders",
                    "partition": 0,
                }
                for index, payload in enumerate(payloads)
            ],
        }
    )


def test_batch_fetched_sets_rows_and_union_schema():
    browser = controller.MessageBrowser(models.BrowseContext())

    applied = browser.on_batch_fetched(_batch('{"a": {"b": 1}}', "not json", '{"a": {"c": 2}, "d": 3}'))

    assert applied is True
    assert len(browser.rows) == 3
    assert browser.rows[1].get("value") == "not json"
    assert browser.schema == ("a.b", "a.c", "d")
    assert browser.error == ""
    assert browser.warning == ""


def test_fetch_started_clears_error_and_warning():
    browser = controller.MessageBrowser(models.BrowseContext())
    browser.error = "boom"
    browser.warning = "careful"

    browser.on_fetch_started()

    assert browser.error == ""
    assert browser.warning == ""


def test_fetch_error_keeps_previous_rows_and_schema(caplog):
    browser = controller.MessageBrowser(models.BrowseContext())
    browser.on_batch_fetched(_batch('{"a": 1}'))

    with caplog.at_level(logging.WARNING, logger="src.browser.controller"):
        applied = browser.on_batch_fetched(models.FetchResult(error="broker unavailable"))

    assert applied is False
    assert browser.error == "broker unavailable"
    assert browser.error_message == "Failed to fetch data. Error: broker unavailable"
    assert len(browser.rows) == 1
    assert browser.schema == ("a",)
    assert "broker unavailable" in caplog.text


def test_timeout_warning_wording_depends_on_context():
    cross = controller.MessageBrowser(models.BrowseContext())
    cross.on_batch_fetched(_batch('{"a": 1}', has_timeout=True))
    single = controller.MessageBrowser(models.BrowseContext(topic="orders"))
    single.on_batch_fetched(_batch('{"a": 1}', has_timeout=True))

    assert cross.warning == "Some messages may (or may not) be missing as one or more topics timed out"
    assert single.warning == "Some messages may (or may not) be missing as the topic timed out"
    assert len(single.rows) == 1


def test_stale_batch_is_discarded():
    browser = controller.MessageBrowser(models.BrowseContext())
    first = browser.on_fetch_started()
    second = browser.on_fetch_started()

    assert browser.on_batch_fetched(_batch('{"late": 1}'), token=first) is False
    assert browser.rows == ()
    assert browser.on_batch_fetched(_batch('{"fresh": 1}'), token=second) is True
    assert browser.schema == ("fresh",)


def test_search_filters_visible_rows_and_raw_projections():
    browser = controller.MessageBrowser(models.BrowseContext())
    browser.on_batch_fetched(_batch('{"city": "Berlin"}', '{"city": "Paris"}'))

    browser.set_search("Paris")

    assert [row.get("city") for row in browser.visible_rows()] == ["Paris"]
    assert browser.raw_projections() == [browser.rows[1].raw_projection]

    browser.set_search("key-0")
    assert [row.fixed.key for row in browser.visible_rows()] == ["key-0"]


def test_case_insensitive_search_setting():
    browser = controller.MessageBrowser(models.BrowseContext(), search_case_sensitive=False)
    browser.on_batch_fetched(_batch('{"city": "Berlin"}'))
    browser.set_search("BERLIN")

    assert len(browser.visible_rows()) == 1


def test_column_definitions_follow_context_and_schema():
    browser = controller.MessageBrowser(models.BrowseContext(topic="orders"))
    browser.on_batch_fetched(_batch('{"d": 1}'))

    assert [c.field for c in browser.column_definitions()] == ["timestamp", "offset", "type", "d", "key", "value"]
    assert browser.title == "Messages for topic: orders"


def test_filter_changed_recomputes_visibility_through_grid():
    browser = controller.MessageBrowser(models.BrowseContext())
    browser.on_batch_fetched(_batch('{"x": "a", "y": ""}', '{"x": "", "y": "b"}'))
    grid = grid_module.TableGrid(browser.visible_rows(), browser.column_definitions())

    assert browser.on_filter_changed() is None

    browser.on_grid_ready(grid)
    assert browser.on_filter_changed() is None
    assert browser.visibility is None

    grid.set_filter("_sys:key", grid_module.ColumnFilter("equals", "key-1"))
    state = browser.on_filter_changed()

    assert state == {"x": False, "y": True}
    assert browser.visibility == state
    assert grid.is_column_visible("x") is False
    assert grid.is_column_visible("_sys:key") is True


def test_set_context_resets_batch_state():
    browser = controller.MessageBrowser(models.BrowseContext())
    token = browser.on_fetch_started()
    browser.on_batch_fetched(_batch('{"a": 1}'), token=token)

    browser.set_context(models.BrowseContext(topic="payments"))

    assert browser.rows == ()
    assert browser.schema == ()
    assert browser.title == "Messages for topic: payments"
    assert browser.on_batch_fetched(_batch('{"a": 1}'), token=token) is False


def test_deeply_nested_payload_falls_back_without_losing_the_batch(caplog):
    deep = "[" * 200000
    browser = controller.MessageBrowser(models.BrowseContext())

    with caplog.at_level(logging.WARNING, logger="src.browser.payload"):
        applied = browser.on_batch_fetched(_batch(deep, '{"ok": 1}'))

    assert applied is True
    assert len(browser.rows) == 2
    assert browser.rows[0].dynamic == {}
    assert browser.rows[0].raw_projection["Value"] == deep
    assert browser.rows[1].get("ok") == 1
    assert browser.schema == ("ok",)
    assert browser.error == ""
    assert "not json encoded" in caplog.text


def test_decodable_payload_nested_past_the_limit_is_kept_as_text():
    nested = '{"a": ' * 150 + "1" + "}" * 150
    browser = controller.MessageBrowser(models.BrowseContext())

    browser.on_batch_fetched(_batch(nested, '{"ok": 1}'))

    assert browser.rows[0].dynamic == {}
    assert browser.rows[0].raw_projection["Value"] == nested
    assert browser.schema == ("ok",)
