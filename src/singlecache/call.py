"""Estado de uma execução em voo e o resultado entregue aos waiters."""

import logging
import threading
from collections.abc import Awaitable, Callable
from concurrent.futures import Future, InvalidStateError
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)


class Result(NamedTuple):
    """Resultado de uma execução coalescida.

    Pode ser desempacotado como ``value, error, shared = group.do(...)``.

    Attributes:
        value: Valor retornado pela operação (None se houve erro)
        error: Exceção levantada pela operação, ou None
        shared: True se ao menos um chamador fez join na execução
    """

    value: Any
    error: BaseException | None
    shared: bool

    def unwrap(self) -> Any:
        """Retorna o valor ou levanta o erro da operação."""
        if self.error is not None:
            raise self.error
        return self.value


class InFlightCall:
    """Uma execução da operação para uma chave.

    ``value`` e ``error`` são escritos uma única vez pela thread que executa
    a operação, antes do evento de conclusão ser sinalizado. ``duplicates``,
    ``forgotten`` e ``sinks`` só são alterados com o lock do grupo.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        self.value: Any = None
        self.error: BaseException | None = None
        self.duplicates = 0
        self.forgotten = False
        self.sinks: list[Future[Result]] = []
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        """Indica se a operação já terminou."""
        return self._done.is_set()

    def run(self, operation: Callable[[], Any]) -> None:
        """Executa a operação e libera os waiters síncronos.

        Exceções fora de ``Exception`` (KeyboardInterrupt, SystemExit) não
        são capturadas: propagam para a thread executora e os waiters desta
        chamada ficam bloqueados.
        """
        try:
            self.value = operation()
        except Exception as e:
            logger.debug(f"Operação falhou para a chave '{self.key}': {e!r}")
            self.error = e
        self._done.set()

    async def run_async(self, operation: Callable[[], Awaitable[Any]]) -> None:
        """Como ``run``, aguardando uma coroutine function no loop atual."""
        try:
            self.value = await operation()
        except Exception as e:
            logger.debug(f"Operação falhou para a chave '{self.key}': {e!r}")
            self.error = e
        self._done.set()

    def fail(self, error: BaseException) -> None:
        """Conclui a chamada com um erro sem executar a operação."""
        self.error = error
        self._done.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Bloqueia até a operação terminar.

        Returns:
            True se terminou, False se o timeout esgotou antes
        """
        return self._done.wait(timeout)

    def joined_result(self) -> Result:
        """Resultado visto por um chamador que fez join."""
        return Result(self.value, self.error, True)

    def drain(self) -> tuple[Result, list[Future[Result]]]:
        """Fecha a chamada: monta o resultado final e retira os sinks.

        Deve ser chamado com o lock do grupo, uma única vez.
        """
        result = Result(self.value, self.error, self.duplicates > 0)
        sinks, self.sinks = self.sinks, []
        return result, sinks


def deliver(result: Result, sinks: list[Future[Result]]) -> None:
    """Entrega o resultado a cada sink, na ordem de registro.

    Sinks cancelados ou já resolvidos pelo consumidor são ignorados; os
    demais continuam recebendo o resultado.
    """
    for sink in sinks:
        try:
            if not sink.set_running_or_notify_cancel():
                logger.debug("Sink cancelado antes da entrega, ignorando")
                continue
            sink.set_result(result)
        except (RuntimeError, InvalidStateError) as e:
            logger.warning(f"Sink já resolvido pelo consumidor, ignorando: {e!r}")
