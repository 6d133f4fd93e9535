"""Grupo de coalescência de chamadas com janela de validade.

Garante que chamadas concorrentes para a mesma chave observem uma única
execução da operação enquanto a janela de validade da execução não
expirar, e que todas recebam o mesmo resultado.
"""

import asyncio
import concurrent.futures
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from typing import Any

from .call import InFlightCall, Result, deliver
from .clock import expires_at, is_joinable, now_ms
from .config import GroupConfig
from .executor import get_thread_pool
from .metrics import NoOpMetrics
from .protocols import CoalescingMetrics
from .validators import Validity, validate_key, validate_operation, validate_validity

logger = logging.getLogger(__name__)


class Group:
    """Registro de chamadas em voo, indexado por chave.

    Um único lock protege o registro (``_calls`` e ``_expiry``) e os campos
    mutáveis de cada chamada. O lock nunca é mantido enquanto a operação
    executa ou enquanto um chamador aguarda.

    Regras de join:
    - chave ausente, ou presente com expiração vencida: nova execução, que
      substitui a entrada anterior (a execução antiga continua rodando);
    - chave presente e dentro da validade: o chamador faz join e recebe o
      resultado da execução existente, sem rodar a operação.

    Ao terminar, a execução remove a própria entrada do registro. A remoção
    só acontece se o registro ainda aponta para esta mesma execução: uma
    execução antiga que termina depois de ter sido substituída (por
    expiração ou forget) nunca remove a entrada da execução mais nova.

    Exemplo:
        ```python
        group = Group()

        value, error, shared = group.do("user:42", 5, lambda: db.load_user(42))

        future = group.do_chan("user:42", 5, lambda: db.load_user(42))
        result = future.result()

        group.forget("user:42")
        ```
    """

    def __init__(
        self,
        default_validity: Validity = None,
        executor: concurrent.futures.Executor | None = None,
        metrics: CoalescingMetrics | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """Inicializa o grupo.

        Args:
            default_validity: Validade usada quando a chamada passa
                ``validity=None`` (default: GroupConfig)
            executor: Executor das originações assíncronas (default: pool global)
            metrics: Coletor de métricas (default: NoOpMetrics)
            clock: Relógio em milissegundos desde a época (default: now_ms)
        """
        self._calls: dict[str, InFlightCall] = {}
        self._expiry: dict[str, int] = {}
        self._lock = threading.Lock()
        # Referências fortes às tasks de do_coroutine até terminarem
        self._tasks: set[asyncio.Task[Result]] = set()

        self._default_validity = GroupConfig.resolve_default_validity(default_validity)
        validate_validity(self._default_validity)
        self._executor = executor
        self._metrics = metrics or NoOpMetrics()
        self._clock = clock or now_ms

    @property
    def executor(self) -> concurrent.futures.Executor:
        """Executor usado pelas originações assíncronas."""
        return self._executor or get_thread_pool()

    @property
    def default_validity(self) -> Validity:
        return self._default_validity

    def do(self, key: str, validity: Validity, operation: Callable[[], Any]) -> Result:
        """Executa a operação com coalescência, bloqueando até o resultado.

        Se existe execução válida para a chave, aguarda o término dela e
        retorna o mesmo resultado com ``shared=True``. Caso contrário roda a
        operação na thread atual.

        Args:
            key: Chave de coalescência
            validity: Janela de validade em segundos ou timedelta (0 = sem
                expiração; None = validade padrão do grupo)
            operation: Função sem argumentos; uma exceção levantada por ela
                é o erro da execução

        Returns:
            Result(value, error, shared)

        Raises:
            InvalidKeyError, InvalidValidityError, InvalidOperationError:
                Em uso incorreto, antes de tocar no registro
        """
        validate_operation(operation)
        call, joined = self._join_or_create(key, validity)

        if joined:
            call.wait()
            return call.joined_result()

        return self._execute(call, operation)

    def do_chan(self, key: str, validity: Validity, operation: Callable[[], Any]) -> Future[Result]:
        """Como ``do``, mas retorna imediatamente um future com o resultado.

        Uma nova execução roda no executor do grupo. Todos os futures
        registrados na mesma execução recebem a mesma instância de Result,
        na ordem em que foram registrados.

        Returns:
            Future que resolve para exatamente um Result
        """
        validate_operation(operation)
        sink: Future[Result] = Future()
        call, joined = self._join_or_create(key, validity, sink)

        if not joined:
            try:
                self.executor.submit(self._execute, call, operation)
            except RuntimeError as e:
                # Executor encerrado: conclui a chamada para não deixar waiters presos
                logger.error(f"Não foi possível agendar execução para '{key}': {e}")
                call.fail(e)
                self._complete(call, 0.0)

        return sink

    async def do_async(self, key: str, validity: Validity, operation: Callable[[], Any]) -> Result:
        """Versão asyncio de ``do_chan``.

        A operação continua síncrona e roda no executor, sem bloquear o
        event loop. Cancelar a task que aguarda não cancela a execução.
        """
        return await asyncio.wrap_future(self.do_chan(key, validity, operation))

    async def do_coroutine(self, key: str, validity: Validity, operation: Callable[[], Awaitable[Any]]) -> Result:
        """Coalescência para coroutine functions, no event loop do chamador.

        Uma nova execução vira uma task no loop atual, então a coroutine
        pode usar objetos ligados a esse loop. Chamadores de outras threads
        ou loops fazem join normalmente e recebem o resultado pelo future.
        Cancelar quem aguarda não cancela a task; se a própria task for
        cancelada, todos os waiters recebem ``CancelledError`` como erro.
        """
        validate_operation(operation)
        sink: Future[Result] = Future()
        call, joined = self._join_or_create(key, validity, sink)

        if not joined:
            task = asyncio.create_task(self._execute_async(call, operation))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        return await asyncio.wrap_future(sink)

    def forget(self, key: str) -> None:
        """Esquece a chamada registrada para a chave.

        Chamadas feitas depois do forget iniciam uma nova execução. Quem já
        fez join continua recebendo o resultado da execução esquecida, que
        não é interrompida nem aguardada.
        """
        validate_key(key)
        with self._lock:
            call = self._calls.pop(key, None)
            self._expiry.pop(key, None)
            if call is not None:
                call.forgotten = True

        if call is not None:
            logger.debug(f"Chamada esquecida para a chave '{key}'")
            self._metrics.record_forget(key)

    def is_pending(self, key: str) -> bool:
        """Verifica se há chamada registrada para a chave."""
        with self._lock:
            return key in self._calls

    def pending_count(self) -> int:
        """Retorna o número de chamadas registradas."""
        with self._lock:
            return len(self._calls)

    def pending_keys(self) -> list[str]:
        """Retorna as chaves com chamada registrada."""
        with self._lock:
            return list(self._calls)

    def _join_or_create(
        self,
        key: str,
        validity: Validity,
        sink: Future[Result] | None = None,
    ) -> tuple[InFlightCall, bool]:
        """Decide, sob o lock, entre join na chamada existente e nova chamada.

        Returns:
            (chamada, joined)
        """
        validate_key(key)
        validate_validity(validity)
        if validity is None:
            validity = self._default_validity

        with self._lock:
            now = self._clock()
            call = self._calls.get(key)

            if call is not None and is_joinable(self._expiry[key], now):
                call.duplicates += 1
                if sink is not None:
                    call.sinks.append(sink)
                joined = True
            else:
                # Calculada antes de tocar no registro: _calls e _expiry mudam juntos
                expiry = expires_at(validity, now)
                if call is not None:
                    logger.debug(f"Chamada para '{key}' expirou, substituindo por nova execução")
                call = InFlightCall(key)
                if sink is not None:
                    call.sinks.append(sink)
                self._calls[key] = call
                self._expiry[key] = expiry
                joined = False

        if joined:
            logger.debug(f"Aguardando execução existente para: {key}")
            self._metrics.record_join(key)
        else:
            logger.debug(f"Iniciando execução para: {key}")
            self._metrics.record_origin(key)

        return call, joined

    def _execute(self, call: InFlightCall, operation: Callable[[], Any]) -> Result:
        """Roda a operação e faz o tratamento de conclusão."""
        start_time = time.perf_counter()
        call.run(operation)
        return self._complete(call, time.perf_counter() - start_time)

    async def _execute_async(self, call: InFlightCall, operation: Callable[[], Awaitable[Any]]) -> Result:
        """Versão de ``_execute`` para coroutine functions."""
        start_time = time.perf_counter()
        try:
            await call.run_async(operation)
        except asyncio.CancelledError as e:
            logger.warning(f"Execução cancelada para: {call.key}")
            call.fail(e)
            self._complete(call, time.perf_counter() - start_time)
            raise
        return self._complete(call, time.perf_counter() - start_time)

    def _complete(self, call: InFlightCall, latency: float) -> Result:
        """Remove a entrada do registro e entrega o resultado aos sinks.

        Depois da remoção a chamada fica inalcançável, então nenhum sink
        novo pode ser adicionado; os sinks retirados são resolvidos fora do
        lock para que callbacks dos futures possam usar o grupo.
        """
        key = call.key
        with self._lock:
            if not call.forgotten and self._calls.get(key) is call:
                del self._calls[key]
                del self._expiry[key]
                logger.debug(f"Execução concluída, entrada removida para: {key}")
            result, sinks = call.drain()

        deliver(result, sinks)
        self._metrics.record_completion(key, latency, call.error)
        return result
