"""
Unit tests for the request gateway (retry policy + deduplication).

Sleeps are injected so backoff is recorded instead of waited for.
"""

import asyncio

import pytest
from httpx import ConnectError, HTTPStatusError, Request, Response, TimeoutException

from prepsync.exceptions import ClientRequestError, RequestCancelledError
from prepsync.gateway import RequestGateway, RetryPolicy, is_client_error


def status_error(code: int) -> HTTPStatusError:
    request = Request("GET", "http://api.test/curriculum/topics")
    return HTTPStatusError(f"{code}", request=request, response=Response(code, request=request))


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def gateway(sleep):
    return RequestGateway(RetryPolicy(max_retries=3, base_delay=1.0), sleep=sleep)


class TestRetryPolicy:
    def test_delays_double(self):
        policy = RetryPolicy(max_retries=4, base_delay=0.5)
        assert [policy.delay_for(i) for i in range(4)] == [0.5, 1.0, 2.0, 4.0]

    def test_worst_case(self):
        assert RetryPolicy(max_retries=3, base_delay=1.0).worst_case_seconds == 3.0

    @pytest.mark.parametrize("kwargs", [{"max_retries": 0}, {"base_delay": -1}])
    def test_invalid_policy(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestClassification:
    def test_4xx_is_client_error(self):
        assert is_client_error(status_error(404))
        assert is_client_error(ClientRequestError("bad", 422))

    def test_5xx_and_transport_errors_are_transient(self):
        assert not is_client_error(status_error(503))
        assert not is_client_error(TimeoutException("slow"))
        assert not is_client_error(RuntimeError("boom"))


class TestRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self, gateway, sleep):
        async def op():
            return {"ok": True}

        assert await gateway.execute("GET /a", op) == {"ok": True}
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_permanent_transient_failure_hits_ceiling(self, gateway, sleep):
        calls = 0

        async def op():
            nonlocal calls
            calls += 1
            raise ConnectError(f"refused {calls}")

        with pytest.raises(ConnectError, match="refused 3"):
            await gateway.execute("GET /a", op)

        assert calls == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_server_error_then_success(self, gateway, sleep):
        outcomes = [status_error(502), TimeoutException("slow"), "done"]

        async def op():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        assert await gateway.execute("GET /a", op) == "done"
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, gateway, sleep):
        calls = 0

        async def op():
            nonlocal calls
            calls += 1
            raise status_error(404)

        with pytest.raises(HTTPStatusError):
            await gateway.execute("GET /missing", op)

        assert calls == 1
        assert sleep.delays == []


class TestDeduplication:
    @pytest.mark.asyncio
    async def test_concurrent_calls_share_one_operation(self, gateway):
        calls = 0
        release = asyncio.Event()

        async def op():
            nonlocal calls
            calls += 1
            await release.wait()
            return calls

        first = asyncio.ensure_future(gateway.execute("GET /topics", op))
        second = asyncio.ensure_future(gateway.execute("GET /topics", op))
        await asyncio.sleep(0)
        assert gateway.in_flight("GET /topics")

        release.set()
        assert await asyncio.gather(first, second) == [1, 1]
        assert calls == 1
        assert not gateway.in_flight("GET /topics")

    @pytest.mark.asyncio
    async def test_distinct_ids_run_separately(self, gateway):
        calls = []

        async def make(tag):
            calls.append(tag)
            return tag

        results = await asyncio.gather(
            gateway.execute("GET /a", lambda: make("a")),
            gateway.execute("GET /b", lambda: make("b")),
        )
        assert results == ["a", "b"]
        assert sorted(calls) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_shared_failure_reaches_every_caller_and_clears_registry(self, gateway, sleep):
        calls = 0

        async def op():
            nonlocal calls
            calls += 1
            raise ConnectError("down")

        results = await asyncio.gather(
            gateway.execute("POST /toggle", op),
            gateway.execute("POST /toggle", op),
            return_exceptions=True,
        )

        assert all(isinstance(r, ConnectError) for r in results)
        assert calls == 3  # one attempt sequence, not two
        assert gateway.pending_count == 0

    @pytest.mark.asyncio
    async def test_new_call_after_settle_starts_fresh(self, gateway):
        calls = 0

        async def op():
            nonlocal calls
            calls += 1
            return calls

        assert await gateway.execute("GET /a", op) == 1
        assert await gateway.execute("GET /a", op) == 2


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_before_first_attempt(self, gateway):
        cancel = asyncio.Event()
        cancel.set()
        called = False

        async def op():
            nonlocal called
            called = True

        with pytest.raises(RequestCancelledError):
            await gateway.execute("GET /a", op, cancel=cancel)
        assert called is False

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_stops_retries(self):
        cancel = asyncio.Event()
        calls = 0

        async def slow_sleep(seconds):
            await asyncio.sleep(3600)

        gateway = RequestGateway(RetryPolicy(max_retries=5, base_delay=1.0), sleep=slow_sleep)

        async def op():
            nonlocal calls
            calls += 1
            raise TimeoutException("slow")

        task = asyncio.ensure_future(gateway.execute("GET /a", op, cancel=cancel))
        await asyncio.sleep(0.01)
        cancel.set()

        with pytest.raises(RequestCancelledError):
            await asyncio.wait_for(task, timeout=1)
        assert calls == 1
        assert gateway.pending_count == 0


class TestUnsharedCalls:
    @pytest.mark.asyncio
    async def test_dedupe_off_runs_every_call(self, gateway):
        calls = 0
        release = asyncio.Event()

        async def op():
            nonlocal calls
            calls += 1
            await release.wait()
            return calls

        first = asyncio.ensure_future(gateway.execute("POST /toggle", op, dedupe=False))
        second = asyncio.ensure_future(gateway.execute("POST /toggle", op, dedupe=False))
        await asyncio.sleep(0)
        assert not gateway.in_flight("POST /toggle")

        release.set()
        assert sorted(await asyncio.gather(first, second)) == [2, 2]
        assert calls == 2

    @pytest.mark.asyncio
    async def test_single_attempt_raises_without_backoff(self, sleep):
        gateway = RequestGateway(RetryPolicy(max_retries=1, base_delay=1.0), sleep=sleep)

        async def op():
            raise ConnectError("down")

        with pytest.raises(ConnectError, match="down"):
            await gateway.execute("GET /a", op)
        assert sleep.delays == []
