"""Testes para InFlightCall, Result e a entrega aos sinks."""

import asyncio
import logging
from concurrent.futures import Future

import pytest

from singlecache.call import InFlightCall, Result, deliver


class TestResult:
    """Testes para Result."""

    def test_unwrap_value(self) -> None:
        assert Result("bar", None, False).unwrap() == "bar"

    def test_unwrap_error(self) -> None:
        with pytest.raises(LookupError):
            Result(None, LookupError("x"), True).unwrap()

    def test_equals_tuple(self) -> None:
        assert Result("bar", None, True) == ("bar", None, True)


class TestInFlightCall:
    """Testes para InFlightCall."""

    def test_initial_state(self) -> None:
        call = InFlightCall("k")

        assert call.key == "k"
        assert call.duplicates == 0
        assert call.forgotten is False
        assert call.sinks == []
        assert not call.done

    def test_run_stores_value_and_signals(self) -> None:
        call = InFlightCall("k")

        call.run(lambda: 42)

        assert call.done
        assert call.wait(0)
        assert call.value == 42
        assert call.error is None

    def test_run_stores_exception_as_error(self) -> None:
        call = InFlightCall("k")
        error = ValueError("boom")

        def fail() -> None:
            raise error

        call.run(fail)

        assert call.done
        assert call.error is error
        assert call.value is None

    @pytest.mark.parametrize("interruption", [KeyboardInterrupt, SystemExit])
    def test_base_exception_propagates_and_keeps_waiters_blocked(self, interruption: type[BaseException]) -> None:
        """KeyboardInterrupt e SystemExit não são erros da operação: propagam e não sinalizam."""
        call = InFlightCall("k")

        def interrupt() -> None:
            raise interruption

        with pytest.raises(interruption):
            call.run(interrupt)

        assert not call.done
        assert not call.wait(0.01)
        assert call.error is None

    def test_fail(self) -> None:
        call = InFlightCall("k")
        error = RuntimeError("shutdown")

        call.fail(error)

        assert call.done
        assert call.error is error

    def test_wait_timeout(self) -> None:
        assert InFlightCall("k").wait(0.01) is False

    def test_joined_result_is_shared(self) -> None:
        call = InFlightCall("k")
        call.run(lambda: "bar")

        assert call.joined_result() == Result("bar", None, True)

    def test_drain_returns_result_and_clears_sinks(self) -> None:
        call = InFlightCall("k")
        sink: Future[Result] = Future()
        call.sinks.append(sink)
        call.duplicates = 2
        call.run(lambda: "bar")

        result, sinks = call.drain()

        assert result == Result("bar", None, True)
        assert sinks == [sink]
        assert call.sinks == []


class TestDeliver:
    """Testes para deliver."""

    def test_resolves_every_sink_with_same_result(self) -> None:
        sinks: list[Future[Result]] = [Future(), Future()]
        result = Result("bar", None, True)

        deliver(result, sinks)

        assert all(s.result(0) is result for s in sinks)

    def test_skips_cancelled_sink(self) -> None:
        cancelled: Future[Result] = Future()
        cancelled.cancel()
        live: Future[Result] = Future()

        deliver(Result(1, None, False), [cancelled, live])

        assert cancelled.cancelled()
        assert live.result(0).value == 1

    def test_skips_sink_resolved_by_consumer(self, caplog: pytest.LogCaptureFixture) -> None:
        """Um sink já resolvido não deve impedir a entrega aos seguintes."""
        resolved: Future[Result] = Future()
        resolved.set_result(Result("other", None, False))
        live: Future[Result] = Future()
        result = Result("bar", None, True)

        with caplog.at_level(logging.WARNING, logger="singlecache.call"):
            deliver(result, [resolved, live])

        assert resolved.result(0) == Result("other", None, False)
        assert live.result(0) is result
        assert "já resolvido" in caplog.text

    def test_skips_sink_already_running(self) -> None:
        running: Future[Result] = Future()
        running.set_running_or_notify_cancel()
        live: Future[Result] = Future()

        deliver(Result(1, None, False), [running, live])

        assert live.result(0).value == 1


class TestInFlightCallAsync:
    """Testes para InFlightCall.run_async."""

    @pytest.mark.asyncio
    async def test_run_async_stores_value(self) -> None:
        call = InFlightCall("k")

        async def compute() -> int:
            await asyncio.sleep(0)
            return 7

        await call.run_async(compute)

        assert call.done
        assert call.value == 7
        assert call.error is None

    @pytest.mark.asyncio
    async def test_run_async_stores_exception_as_error(self) -> None:
        call = InFlightCall("k")
        error = LookupError("missing")

        async def fail() -> None:
            raise error

        await call.run_async(fail)

        assert call.done
        assert call.error is error

    @pytest.mark.asyncio
    async def test_run_async_cancellation_propagates(self) -> None:
        call = InFlightCall("k")

        async def cancelled() -> None:
            raise asyncio.CancelledError

        with pytest.raises(asyncio.CancelledError):
            await call.run_async(cancelled)

        assert not call.done
