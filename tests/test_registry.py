from __future__ import annotations

import logging

import pytest

from pyslices.config import SliceConfig
from pyslices.context import SliceContext
from pyslices.exceptions import SliceConfigError, SliceError


def test_get_builds_once_and_returns_same_bundle() -> None:
    context = SliceContext(None)

    first = context.get_bundle("taskTags")
    second = context.get_bundle("taskTags")

    assert first is second
    assert first.cache is second.cache
    assert first.events is second.events
    assert context.registry.keys() == ["taskTags"]


def test_distinct_keys_have_independent_state() -> None:
    context = SliceContext(None, slices=[SliceConfig.local("a"), SliceConfig.local("b")])

    context.get_bundle("a").cache.upsert({"id": 1})

    assert context.snapshot("a").ids == [1]
    assert context.snapshot("b").ids == []


def test_unconfigured_key_gets_derived_defaults() -> None:
    context = SliceContext(None, table_prefix="wh_")

    bundle = context.get_bundle("userSessions")

    assert bundle.config.endpoint == "/user-sessions"
    assert bundle.table == "wh_user_sessions"
    assert bundle.config.id_field == "id"


def test_empty_key_is_accepted() -> None:
    context = SliceContext(None)

    assert context.get_bundle("").key == ""


def test_non_string_key_is_rejected() -> None:
    context = SliceContext(None)

    with pytest.raises(TypeError):
        context.get_bundle(3)  # type: ignore[arg-type]


def test_configure_identical_config_is_noop() -> None:
    config = SliceConfig("tasks", endpoint="/v2/tasks")
    context = SliceContext(None, slices=[config])
    bundle = context.get_bundle("tasks")

    context.configure(SliceConfig("tasks", endpoint="/v2/tasks"))

    assert context.get_bundle("tasks") is bundle
    assert bundle.config.endpoint == "/v2/tasks"


def test_configure_conflict_after_first_use_raises() -> None:
    context = SliceContext(None)
    context.get_bundle("tasks")

    with pytest.raises(SliceConfigError):
        context.configure(SliceConfig("tasks", endpoint="/v2/tasks"))


def test_configure_before_first_use_can_be_replaced() -> None:
    context = SliceContext(None)
    context.configure(SliceConfig("tasks", endpoint="/v1/tasks"))
    context.configure(SliceConfig("tasks", endpoint="/v2/tasks"))

    assert context.get_bundle("tasks").config.endpoint == "/v2/tasks"


def test_by_table_resolves_configured_and_used_slices() -> None:
    context = SliceContext(None, slices=[SliceConfig("apiKeys", table="keys")], table_prefix="wh_")
    used = context.get_bundle("taskTags")

    assert context.registry.by_table("keys") is context.get_bundle("apiKeys")
    assert context.registry.by_table("wh_task_tags") is used
    assert context.registry.by_table("task_tags") is None


def test_event_names_are_prefixed_by_key() -> None:
    context = SliceContext(None)

    names = context.event_names("taskTags")

    assert names.created == "taskTags:created"
    assert names.updated == "taskTags:updated"
    assert names.removed == "taskTags:removed"
    assert names.loaded == "taskTags:loaded"


def test_root_state_lists_every_used_slice() -> None:
    context = SliceContext(None, slices=[SliceConfig.local("notes")])
    context.get_bundle("notes").cache.upsert({"id": "n1"})
    context.get_bundle("tasks")

    state = context.root_state()

    assert list(state) == ["notes", "tasks"]
    assert state["notes"].ids == ["n1"]
    assert state["tasks"].records == ()


@pytest.mark.asyncio
async def test_dispatch_to_wrong_bundle_is_rejected() -> None:
    context = SliceContext(None, slices=[SliceConfig.local("a"), SliceConfig.local("b")])
    action = context.actions("a").add_async({"id": 1})

    with pytest.raises(SliceError):
        context.get_bundle("b").dispatch(action)
    assert context.snapshot("b").loading is False


def test_configure_rejects_table_owned_by_another_slice() -> None:
    context = SliceContext(None, slices=[SliceConfig("taskTags")])

    with pytest.raises(SliceConfigError, match="task_tags"):
        context.configure(SliceConfig("task_tags"))
    context.configure(SliceConfig("task_tags", table="task_tags_archive"))

    assert context.registry.by_table("task_tags") is context.get_bundle("taskTags")
    assert context.registry.by_table("task_tags_archive") is context.get_bundle("task_tags")


def test_derived_table_collision_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    context = SliceContext(None)
    owner = context.get_bundle("taskTags")

    with caplog.at_level(logging.WARNING, logger="pyslices.slices.registry"):
        context.get_bundle("task_tags")

    assert "already owned by taskTags" in caplog.text
    assert context.registry.by_table("task_tags") is owner
