"""Protocols para extensibilidade da biblioteca.

Define interfaces que permitem implementações customizadas de:
- KeyBuilder: Geração de chaves de coalescência para o decorator
- CoalescingMetrics: Coleta de métricas do grupo
"""

from collections.abc import Callable
from typing import Any, Protocol


class KeyBuilder(Protocol):
    """Protocol para construtores de chaves de coalescência.

    Example:
        ```python
        class UserKeyBuilder:
            def build_key(self, func, args, kwargs) -> str:
                return f"user:{args[0]}"
        ```
    """

    def build_key(
        self,
        func: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> str:
        """Constrói a chave.

        Args:
            func: Função decorada
            args: Argumentos posicionais
            kwargs: Argumentos nomeados

        Returns:
            Chave como string
        """
        ...


class CoalescingMetrics(Protocol):
    """Protocol para coleta de métricas de coalescência.

    Os métodos são chamados fora do lock do grupo.

    Example:
        ```python
        class PrometheusMetrics:
            def record_join(self, key: str) -> None:
                coalesced_total.labels(key=key).inc()
        ```
    """

    def record_origin(self, key: str) -> None:
        """Registra uma nova execução da operação."""
        ...

    def record_join(self, key: str) -> None:
        """Registra um chamador que fez join em execução existente."""
        ...

    def record_forget(self, key: str) -> None:
        """Registra um forget que removeu uma chamada registrada."""
        ...

    def record_completion(self, key: str, latency: float, error: BaseException | None) -> None:
        """Registra o fim de uma execução.

        Args:
            key: Chave da execução
            latency: Duração da operação em segundos
            error: Erro da operação, ou None
        """
        ...
