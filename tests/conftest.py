"""Configuração de fixtures para testes."""

import concurrent.futures
import threading
import time
from collections.abc import Callable, Iterator

import pytest

from singlecache import Group, InMemoryMetrics


class ManualClock:
    """Relógio em milissegundos controlado pelo teste."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += int(seconds * 1000)


class Gate:
    """Operação controlada: registra execuções e bloqueia até ser liberada."""

    def __init__(self, value: object = "bar") -> None:
        self.value = value
        self.calls = 0
        self.started = threading.Event()
        self.release = threading.Event()
        self._lock = threading.Lock()

    def __call__(self) -> object:
        with self._lock:
            self.calls += 1
        self.started.set()
        if not self.release.wait(5):
            raise TimeoutError("gate não foi liberado")
        return self.value


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Aguarda até o predicado ser verdadeiro ou falha o teste."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            pytest.fail("condição não satisfeita dentro do timeout")
        time.sleep(0.001)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def metrics() -> InMemoryMetrics:
    return InMemoryMetrics()


@pytest.fixture
def executor() -> Iterator[concurrent.futures.ThreadPoolExecutor]:
    pool = concurrent.futures.ThreadPoolExecutor(max_workers=8, thread_name_prefix="singlecache-test")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def group(clock: ManualClock, metrics: InMemoryMetrics, executor: concurrent.futures.ThreadPoolExecutor) -> Group:
    """Grupo com relógio manual, métricas em memória e executor próprio."""
    return Group(clock=clock, metrics=metrics, executor=executor)


@pytest.fixture
def make_gate() -> type[Gate]:
    return Gate


@pytest.fixture(name="wait_until")
def wait_until_fixture() -> Callable[..., None]:
    return wait_until
