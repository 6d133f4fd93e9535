"""Métricas de coalescência usando OpenTelemetry."""

from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from opentelemetry import metrics as otel_metrics


class NoOpMetrics:
    """Coletor de métricas que não faz nada (default)."""

    def record_origin(self, key: str) -> None:
        pass

    def record_join(self, key: str) -> None:
        pass

    def record_forget(self, key: str) -> None:
        pass

    def record_completion(self, key: str, latency: float, error: BaseException | None) -> None:
        pass


@dataclass
class KeyStats:
    """Estatísticas para uma chave específica."""

    origins: int = 0
    joins: int = 0
    forgets: int = 0
    errors: int = 0
    total_latency: float = 0.0
    completions: int = 0

    @property
    def total_requests(self) -> int:
        return self.origins + self.joins

    @property
    def coalescing_ratio(self) -> float:
        total = self.total_requests
        return self.joins / total if total > 0 else 0.0

    @property
    def avg_latency_ms(self) -> float:
        return (self.total_latency / self.completions * 1000) if self.completions > 0 else 0.0


@dataclass
class CoalescingStats:
    """Estatísticas agregadas do grupo."""

    origins: int = 0
    joins: int = 0
    forgets: int = 0
    errors: int = 0
    latencies: list[float] = field(default_factory=list)

    @property
    def total_requests(self) -> int:
        return self.origins + self.joins

    @property
    def coalescing_ratio(self) -> float:
        """Fração dos pedidos atendidos por join."""
        total = self.total_requests
        return self.joins / total if total > 0 else 0.0

    @property
    def avg_latency_ms(self) -> float:
        if not self.latencies:
            return 0.0
        return sum(self.latencies) / len(self.latencies) * 1000


class OpenTelemetryMetrics:
    """Coletor de métricas usando OpenTelemetry.

    Métricas exportadas:
    - singlecache.origins (counter): Execuções iniciadas
    - singlecache.joins (counter): Chamadores coalescidos
    - singlecache.forgets (counter): Chamadas esquecidas
    - singlecache.errors (counter): Execuções que terminaram com erro
    - singlecache.latency (histogram): Duração das execuções em segundos

    Example:
        ```python
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry import metrics

        metrics.set_meter_provider(MeterProvider())

        group = Group(metrics=OpenTelemetryMetrics())
        ```
    """

    def __init__(self, meter_name: str = "singlecache") -> None:
        """Inicializa métricas OpenTelemetry.

        Args:
            meter_name: Nome do meter para agrupar métricas
        """
        meter = otel_metrics.get_meter(meter_name)

        self._origins_counter = meter.create_counter(
            "singlecache.origins",
            description="Número de execuções iniciadas",
            unit="1",
        )
        self._joins_counter = meter.create_counter(
            "singlecache.joins",
            description="Número de chamadores coalescidos em execução existente",
            unit="1",
        )
        self._forgets_counter = meter.create_counter(
            "singlecache.forgets",
            description="Número de chamadas esquecidas",
            unit="1",
        )
        self._errors_counter = meter.create_counter(
            "singlecache.errors",
            description="Número de execuções que terminaram com erro",
            unit="1",
        )
        self._latency_histogram = meter.create_histogram(
            "singlecache.latency",
            description="Duração das execuções coalescidas",
            unit="s",
        )

    def record_origin(self, key: str) -> None:
        self._origins_counter.add(1, {"key": key})

    def record_join(self, key: str) -> None:
        self._joins_counter.add(1, {"key": key})

    def record_forget(self, key: str) -> None:
        self._forgets_counter.add(1, {"key": key})

    def record_completion(self, key: str, latency: float, error: BaseException | None) -> None:
        outcome = "error" if error is not None else "ok"
        self._latency_histogram.record(latency, {"key": key, "outcome": outcome})
        if error is not None:
            self._errors_counter.add(1, {"key": key, "error_type": type(error).__name__})


class InMemoryMetrics:
    """Coletor de métricas em memória com estatísticas por chave.

    Útil para desenvolvimento e testes. Thread-safe.
    """

    def __init__(self, max_samples: int = 1000) -> None:
        """Inicializa coletor de métricas.

        Args:
            max_samples: Máximo de amostras de latência a manter
        """
        self._max_samples = max_samples
        self._lock = Lock()
        self._overall = CoalescingStats()
        self._by_key: dict[str, KeyStats] = defaultdict(KeyStats)

    def record_origin(self, key: str) -> None:
        with self._lock:
            self._overall.origins += 1
            self._by_key[key].origins += 1

    def record_join(self, key: str) -> None:
        with self._lock:
            self._overall.joins += 1
            self._by_key[key].joins += 1

    def record_forget(self, key: str) -> None:
        with self._lock:
            self._overall.forgets += 1
            self._by_key[key].forgets += 1

    def record_completion(self, key: str, latency: float, error: BaseException | None) -> None:
        with self._lock:
            self._overall.latencies.append(latency)
            self._trim_samples(self._overall.latencies)
            stats = self._by_key[key]
            stats.completions += 1
            stats.total_latency += latency
            if error is not None:
                self._overall.errors += 1
                stats.errors += 1

    def _trim_samples(self, samples: list[Any]) -> None:
        """Remove amostras antigas se exceder limite."""
        if len(samples) > self._max_samples:
            del samples[: len(samples) - self._max_samples]

    def get_stats(self) -> CoalescingStats:
        """Retorna uma cópia das estatísticas agregadas."""
        with self._lock:
            return CoalescingStats(
                origins=self._overall.origins,
                joins=self._overall.joins,
                forgets=self._overall.forgets,
                errors=self._overall.errors,
                latencies=self._overall.latencies.copy(),
            )

    def get_key_stats(self, key: str) -> KeyStats | None:
        """Retorna uma cópia das estatísticas de uma chave."""
        with self._lock:
            if key not in self._by_key:
                return None
            stats = self._by_key[key]
            return KeyStats(
                origins=stats.origins,
                joins=stats.joins,
                forgets=stats.forgets,
                errors=stats.errors,
                total_latency=stats.total_latency,
                completions=stats.completions,
            )

    def reset(self) -> None:
        """Reseta todas as estatísticas."""
        with self._lock:
            self._overall = CoalescingStats()
            self._by_key.clear()
