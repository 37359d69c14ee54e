"""
Tests for the username availability pipeline.
Debounce is shortened so the timing tests finish quickly.
"""

import asyncio
import logging

import httpx
import pytest

from signup_form.availability_client import AvailabilityClient
from signup_form.exceptions import (
    APIValidationError,
    DecodingError,
    FormClosedError,
    InvalidResponseError,
    TransportError,
)
from signup_form.fakes import ControlledCheck
from signup_form.models import Available, Failed
from signup_form.pipeline import AvailabilityPipeline, PipelineState

DEBOUNCE = 0.05


def _pipeline(check):
    pipeline = AvailabilityPipeline(check, debounce=DEBOUNCE)
    published = []
    pipeline.subscribe(published.append)
    pipeline.submit("")  # initial field value
    return pipeline, published


# ── First value and debounce ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_initial_value_is_skipped(caplog):
    caplog.set_level(logging.DEBUG, logger="signup_form.pipeline")
    check = ControlledCheck(answers={})
    pipeline, published = _pipeline(check)

    await asyncio.sleep(DEBOUNCE * 2)

    assert pipeline.state == PipelineState.IDLE
    assert check.calls == []
    assert published == []
    assert "Skipping initial username value" in caplog.text


@pytest.mark.asyncio
async def test_rapid_edits_issue_one_check_for_last_value():
    check = ControlledCheck(answers={})
    pipeline, published = _pipeline(check)

    for value in ("a", "ab", "abc"):
        pipeline.submit(value)
        await asyncio.sleep(DEBOUNCE / 5)
    assert pipeline.state == PipelineState.DEBOUNCING

    await pipeline.join()

    assert check.calls == ["abc"]
    assert published == [Available(is_available=True)]
    assert pipeline.state == PipelineState.SETTLED
    assert pipeline.value == "abc"
    assert pipeline.outcome == Available(is_available=True)


@pytest.mark.asyncio
async def test_spaced_edits_each_get_checked():
    check = ControlledCheck(answers={"alice": Available(is_available=False)})
    pipeline, published = _pipeline(check)

    pipeline.submit("alice")
    await pipeline.join()
    pipeline.submit("alicia")
    await pipeline.join()

    assert check.calls == ["alice", "alicia"]
    assert published == [Available(is_available=False), Available(is_available=True)]


# ── Deduplication ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_repeating_settled_value_does_not_refetch():
    check = ControlledCheck(answers={})
    pipeline, published = _pipeline(check)

    pipeline.submit("alice")
    await pipeline.join()
    pipeline.submit("alice")
    await asyncio.sleep(DEBOUNCE * 2)
    await pipeline.join()

    assert check.calls == ["alice"]
    assert len(published) == 1
    assert pipeline.state == PipelineState.SETTLED


@pytest.mark.asyncio
async def test_repeated_edit_while_debouncing_keeps_original_deadline():
    debounce = 0.2
    check = ControlledCheck(answers={})
    pipeline = AvailabilityPipeline(check, debounce=debounce)
    pipeline.submit("")

    pipeline.submit("alice")
    await asyncio.sleep(debounce * 0.6)
    pipeline.submit("alice")
    assert pipeline.state == PipelineState.DEBOUNCING

    # Past the first deadline, well before a restarted one would fire
    await asyncio.sleep(debounce * 0.6)

    assert check.calls == ["alice"]
    assert pipeline.state == PipelineState.SETTLED
    await pipeline.aclose()


@pytest.mark.asyncio
async def test_returning_to_settled_value_within_debounce_does_not_refetch():
    check = ControlledCheck(answers={})
    pipeline, published = _pipeline(check)

    pipeline.submit("alice")
    await pipeline.join()
    pipeline.submit("alice2")
    pipeline.submit("alice")
    await pipeline.join()

    assert check.calls == ["alice"]
    assert len(published) == 1
    assert pipeline.state == PipelineState.SETTLED
    assert pipeline.value == "alice"


# ── Stale results ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_superseded_in_flight_result_is_never_published():
    check = ControlledCheck()
    pipeline, published = _pipeline(check)

    pipeline.submit("foo")
    await check.wait_for_call("foo")
    assert pipeline.state == PipelineState.IN_FLIGHT

    pipeline.submit("bar")
    assert pipeline.state == PipelineState.DEBOUNCING
    check.resolve("foo", Available(is_available=False))

    await check.wait_for_call("bar")
    check.resolve("bar", Available(is_available=True))
    await pipeline.join()

    assert check.calls == ["foo", "bar"]
    assert published == [Available(is_available=True)]
    assert pipeline.value == "bar"


@pytest.mark.asyncio
async def test_result_that_cannot_be_aborted_is_dropped(caplog):
    caplog.set_level(logging.DEBUG, logger="signup_form.pipeline")
    gate = asyncio.Event()
    calls = []

    async def stubborn_check(username):
        # Finishes even if the cycle is cancelled underneath it
        calls.append(username)
        if username == "foo":
            try:
                await gate.wait()
            except asyncio.CancelledError:
                pass
        return Available(is_available=username != "foo")

    pipeline, published = _pipeline(stubborn_check)

    pipeline.submit("foo")
    while "foo" not in calls:
        await asyncio.sleep(0.005)
    pipeline.submit("bar")
    await pipeline.join()

    assert published == [Available(is_available=True)]
    assert pipeline.value == "bar"
    assert "Dropping stale availability outcome for 'foo'" in caplog.text


# ── Failures ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_failures_are_published_and_pipeline_keeps_working():
    transport_failure = Failed(error=TransportError(httpx.ConnectError("refused")))
    check = ControlledCheck(answers={"first": transport_failure})
    pipeline, published = _pipeline(check)

    pipeline.submit("first")
    await pipeline.join()
    pipeline.submit("second")
    await pipeline.join()

    assert published == [transport_failure, Available(is_available=True)]


@pytest.mark.asyncio
async def test_raised_api_error_becomes_failed_outcome():
    check = ControlledCheck(answers={"taken": APIValidationError("taken")})
    pipeline, published = _pipeline(check)

    pipeline.submit("taken")
    await pipeline.join()

    assert len(published) == 1
    assert isinstance(published[0], Failed)
    assert published[0].error.reason == "taken"


@pytest.mark.asyncio
async def test_undecodable_body_from_real_client_is_published_as_failure():
    def handler(request):
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip"))

    client = AvailabilityClient(base_url="http://availability.test", transport=httpx.MockTransport(handler))
    pipeline, published = _pipeline(client.check_username_available)

    pipeline.submit("alice")
    await pipeline.join()

    assert pipeline.state == PipelineState.SETTLED
    assert len(published) == 1
    assert isinstance(published[0].error, DecodingError)
    await pipeline.aclose()


@pytest.mark.asyncio
async def test_unexpected_check_error_is_published_and_pipeline_keeps_working(caplog):
    check = ControlledCheck(answers={"boom": RuntimeError("bug in check")})
    pipeline, published = _pipeline(check)

    pipeline.submit("boom")
    await pipeline.join()
    pipeline.submit("alice")
    await pipeline.join()

    assert isinstance(published[0].error, InvalidResponseError)
    assert published[1] == Available(is_available=True)
    assert "Availability check for 'boom' failed unexpectedly" in caplog.text
    await pipeline.aclose()


# ── Sharing and teardown ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_all_listeners_share_one_check():
    check = ControlledCheck(answers={})
    pipeline, first = _pipeline(check)
    second = []
    pipeline.subscribe(second.append)

    pipeline.submit("alice")
    await pipeline.join()

    assert check.calls == ["alice"]
    assert first == second == [Available(is_available=True)]


@pytest.mark.asyncio
async def test_unsubscribed_listener_gets_nothing():
    check = ControlledCheck(answers={})
    pipeline, _ = _pipeline(check)
    received = []
    unsubscribe = pipeline.subscribe(received.append)
    unsubscribe()

    pipeline.submit("alice")
    await pipeline.join()

    assert received == []


@pytest.mark.asyncio
async def test_close_cancels_pending_check():
    check = ControlledCheck(answers={})
    pipeline, published = _pipeline(check)

    pipeline.submit("alice")
    await pipeline.aclose()
    await asyncio.sleep(DEBOUNCE * 2)

    assert pipeline.closed
    assert check.calls == []
    assert published == []
    with pytest.raises(FormClosedError):
        pipeline.submit("bob")


@pytest.mark.asyncio
async def test_close_drops_in_flight_result():
    check = ControlledCheck()
    pipeline, published = _pipeline(check)

    pipeline.submit("alice")
    await check.wait_for_call("alice")
    pipeline.close()
    check.resolve("alice", Available(is_available=True))
    await asyncio.sleep(0)

    assert published == []
