"""Decorator @coalesce para coalescência transparente de chamadas."""

import inspect
import logging
from collections.abc import Callable
from functools import partial, wraps
from typing import Any, overload

from .group import Group
from .key_builder import DefaultKeyBuilder
from .protocols import KeyBuilder
from .validators import Validity, validate_validity

logger = logging.getLogger(__name__)


class CoalescedWrapper:
    """Wrapper para funções decoradas com @coalesce.

    Funções síncronas passam por ``Group.do``; coroutine functions passam
    por ``Group.do_coroutine`` e rodam como task no event loop do chamador.

    Implementa o descriptor protocol para suportar métodos de instância.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        group: Group,
        validity: Validity,
        key_builder: KeyBuilder,
    ) -> None:
        self._func = func
        self._group = group
        self._validity = validity
        self._key_builder = key_builder
        self._is_async = inspect.iscoroutinefunction(func)

        # Preserva metadados da função original
        wraps(func)(self)

    @property
    def group(self) -> Group:
        return self._group

    def __get__(self, obj: Any, _objtype: type | None = None) -> "CoalescedWrapper | BoundCoalescedMethod":
        """Descriptor protocol para suporte a métodos."""
        if obj is None:
            return self
        return BoundCoalescedMethod(self, obj)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Executa a função com coalescência."""
        if self._is_async:
            return self._call_async(*args, **kwargs)
        return self._call_sync(*args, **kwargs)

    def _call_sync(self, *args: Any, **kwargs: Any) -> Any:
        key = self._key_builder.build_key(self._func, args, kwargs)
        result = self._group.do(key, self._validity, partial(self._func, *args, **kwargs))
        if result.shared:
            logger.debug(f"Resultado compartilhado: {key}")
        return result.unwrap()

    async def _call_async(self, *args: Any, **kwargs: Any) -> Any:
        key = self._key_builder.build_key(self._func, args, kwargs)
        operation = partial(self._func, *args, **kwargs)
        result = await self._group.do_coroutine(key, self._validity, operation)
        if result.shared:
            logger.debug(f"Resultado compartilhado: {key}")
        return result.unwrap()

    def forget(self, *args: Any, **kwargs: Any) -> None:
        """Esquece a execução em voo para os argumentos especificados."""
        key = self._key_builder.build_key(self._func, args, kwargs)
        self._group.forget(key)


class BoundCoalescedMethod:
    """Wrapper para métodos bound (com self/cls)."""

    def __init__(self, wrapper: CoalescedWrapper, instance: Any) -> None:
        self._wrapper = wrapper
        self._instance = instance

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Executa o método com o instance bound."""
        return self._wrapper(self._instance, *args, **kwargs)

    def forget(self, *args: Any, **kwargs: Any) -> None:
        """Esquece a execução em voo deste método."""
        self._wrapper.forget(self._instance, *args, **kwargs)


@overload
def coalesce(func: Callable[..., Any]) -> CoalescedWrapper: ...


@overload
def coalesce(
    *,
    group: Group | None = None,
    validity: Validity = None,
    key_prefix: str | None = None,
    key_builder: KeyBuilder | None = None,
) -> Callable[[Callable[..., Any]], CoalescedWrapper]: ...


def coalesce(
    func: Callable[..., Any] | None = None,
    *,
    group: Group | None = None,
    validity: Validity = None,
    key_prefix: str | None = None,
    key_builder: KeyBuilder | None = None,
) -> CoalescedWrapper | Callable[[Callable[..., Any]], CoalescedWrapper]:
    """Decorator que coalesce chamadas concorrentes com os mesmos argumentos.

    Args:
        func: Função a decorar (quando usado sem parênteses)
        group: Grupo compartilhado (default: um Group novo por função)
        validity: Janela de validade em segundos (default: a do grupo)
        key_prefix: Prefixo das chaves (ignorado se key_builder for passado)
        key_builder: Construtor de chaves customizado

    Returns:
        Função decorada; erros da função são relançados para todos os
        chamadores que compartilharam a execução

    Example:
        ```python
        @coalesce
        def get_user(user_id: int) -> dict:
            return db.query(user_id)

        @coalesce(validity=2)
        async def get_quote(symbol: str) -> float:
            return await api.quote(symbol)

        get_user.forget(123)
        ```
    """
    validate_validity(validity)

    def decorator(fn: Callable[..., Any]) -> CoalescedWrapper:
        return CoalescedWrapper(
            func=fn,
            group=group or Group(),
            validity=validity,
            key_builder=key_builder or DefaultKeyBuilder(prefix=key_prefix),
        )

    if func is not None:
        # Usado sem parênteses: @coalesce
        return decorator(func)

    # Usado com parênteses: @coalesce(...)
    return decorator
