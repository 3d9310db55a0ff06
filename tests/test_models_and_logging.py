from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from models import ActivityEvent, Edge, Node, Profile, SearchFilters
from utils.logging_setup import SafeExtraFormatter, run_logger


def test_formatter_fills_missing_extras():
    fmt = SafeExtraFormatter(fmt="%(message)s kind=%(kind)s run_id=%(run_id)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
    assert fmt.format(record) == "hello kind=- run_id=-"
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
    record.kind = "connections"
    assert fmt.format(record) == "hello kind=connections run_id=-"


def test_run_logger_binds_run_fields(caplog):
    log = run_logger(logging.getLogger("tests.run"), "activities", "abc123").bind(step="load_items")
    with caplog.at_level(logging.INFO, logger="tests.run"):
        log.info("loaded", extra={"status": "running"})
    record = caplog.records[-1]
    assert (record.kind, record.run_id, record.step, record.status) == ("activities", "abc123", "load_items", "running")


def test_node_invariants():
    with pytest.raises(ValidationError):
        Node(id="a", degree=4, profile=Profile(name="A"))
    with pytest.raises(ValidationError):
        Node(id="a", degree=1, match_score=101, profile=Profile(name="A"))
    with pytest.raises(ValidationError):
        Node(id="", degree=1, profile=Profile(name="A"))


def test_edge_weight_bounds():
    with pytest.raises(ValidationError):
        Edge(from_id="a", to_id="b", weight=0)
    assert Edge(from_id="a", to_id="b").weight == 1.0


def test_activity_target_defaults_to_actor_and_is_frozen():
    event = ActivityEvent(actor_id="alice", type="share")
    assert event.target_id == "alice"
    assert event.id
    with pytest.raises(ValidationError):
        event.content = "changed"
    with pytest.raises(ValidationError):
        ActivityEvent(actor_id="alice", type="like")


def test_profile_years_fall_back_to_position_count():
    profile = Profile.model_validate({
        "name": "A",
        "experience": [{"company": "X", "title": "Dev"}, {"company": "Y", "title": "Dev"}],
    })
    assert profile.total_years == 2
    profile = Profile.model_validate({"name": "A", "experience": [{"company": "X", "title": "Dev", "years": 7.5}]})
    assert profile.total_years == 7.5


def test_search_filters_reject_unknown_keys():
    with pytest.raises(ValidationError):
        SearchFilters(industry="tech")
    assert SearchFilters().is_empty()
