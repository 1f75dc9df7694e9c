"""
Property-based tests for logger handles.

Verifies invariants that must hold for any input:
- Sink layout matches the environment/file/rotate table
- Deriving a child never mutates the parent
- Context extraction is idempotent and ignores non-string values
- Encoded records are always single-line standard JSON with an intact envelope
- Trace durations are non-negative and grow with the clock
"""

import json
import logging
from datetime import timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from rhino_logger.clock import ManualClock
from rhino_logger.config import LoggerConfig
from rhino_logger.constants import Environment
from rhino_logger.formatting import FIELDS_ATTR, JSONFormatter, duration_to_string
from rhino_logger.logger import new_logger
from rhino_logger.pipeline import ENCODER_PRESETS, SinkKind, plan_sinks

field_names = st.text(
    alphabet=st.characters(min_codepoint=97, max_codepoint=122), min_size=1, max_size=12
)
field_values = st.one_of(
    st.text(max_size=40),
    st.integers(),
    st.booleans(),
    st.none(),
    st.floats(allow_nan=False, allow_infinity=False),
)
context_values = st.one_of(st.text(max_size=20), st.integers(), st.none(), st.lists(st.integers()))


@settings(max_examples=50, deadline=None)
@given(
    env=st.sampled_from(["development", "production"]),
    log_to_file=st.booleans(),
    rotate=st.booleans(),
)
def test_plan_sinks_matches_table(env, log_to_file, rotate):
    """
    Property: file sinks appear only when requested, rotation picks the
    rotating sink, and development never writes a plain file.
    """
    kind = plan_sinks(LoggerConfig.create(env=env, log_to_file=log_to_file, rotate=rotate))

    if not log_to_file:
        assert kind is SinkKind.CONSOLE
    elif env == "development":
        assert kind is (SinkKind.TEE_ROTATING_FILE_CONSOLE if rotate else SinkKind.CONSOLE)
    else:
        assert kind is (SinkKind.ROTATING_FILE if rotate else SinkKind.PLAIN_FILE)


@settings(max_examples=50, deadline=None)
@given(fields=st.dictionaries(field_names, field_values, max_size=6))
def test_with_fields_never_mutates_parent(fields):
    """Property: a child's bindings never leak into its parent."""
    parent = new_logger()
    try:
        before = parent.fields
        child = parent.with_fields(**fields)

        assert parent.fields == before
        for key, value in fields.items():
            assert child.fields[key] == value
    finally:
        parent.close()


@settings(max_examples=50, deadline=None)
@given(request_id=context_values, user_id=context_values)
def test_context_extraction_idempotent(request_id, user_id):
    """
    Property: deriving twice from the same context yields the same fields,
    and only string values are attached.
    """
    log = new_logger()
    try:
        ctx = {"request_id": request_id, "user_id": user_id}
        first = log.with_context(ctx).fields
        second = log.with_context(ctx).fields

        assert first == second
        assert ("request_id" in first) == isinstance(request_id, str)
        assert ("user_id" in first) == isinstance(user_id, str)
        assert "request_id" not in log.fields
    finally:
        log.close()


any_floats = st.floats(allow_nan=True, allow_infinity=True)


def reject_constant(token):
    raise ValueError(f"non-standard JSON constant {token}")


@settings(max_examples=100, deadline=None)
@given(
    message=st.text(max_size=80),
    fields=st.lists(
        st.tuples(
            st.text(max_size=12),
            st.one_of(field_values, any_floats, st.lists(any_floats, max_size=3)),
        ),
        max_size=6,
    ),
    env=st.sampled_from(list(Environment)),
)
def test_encoded_record_is_single_line_json(message, fields, env):
    """Property: any message and fields encode to one strict JSON line with the envelope first."""
    record = logging.LogRecord("prop", logging.INFO, "/app/svc/mod.py", 7, message, None, None)
    setattr(record, FIELDS_ATTR, tuple(fields))

    output = JSONFormatter(ENCODER_PRESETS[env]).format(record)

    assert "\n" not in output
    data = json.loads(output, parse_constant=reject_constant)

    assert list(data)[:4] == ["level", "time", "message", "caller"]
    assert data["message"] == message
    assert data["caller"] == "svc/mod.py:7"


@settings(max_examples=50, deadline=None)
@given(steps=st.lists(st.floats(min_value=0, max_value=1e4), min_size=1, max_size=10))
def test_trace_elapsed_monotonic(steps):
    """Property: elapsed time never decreases and never goes negative."""
    clock = ManualClock(500.0)
    log = new_logger(env="production", clock=clock)
    try:
        span = log.trace("prop")
        previous = span.elapsed()
        assert previous >= timedelta(0)
        for step in steps:
            clock.advance(step)
            current = span.elapsed()
            assert current >= previous
            previous = current
        span()
    finally:
        log.close()


@settings(max_examples=100, deadline=None)
@given(microseconds=st.integers(min_value=1, max_value=10**12))
def test_duration_string_has_unit(microseconds):
    """Property: every non-zero duration renders with a unit suffix."""
    rendered = duration_to_string(timedelta(microseconds=microseconds))
    assert rendered
    assert rendered[-1] == "s"
    assert not rendered.startswith("-")
