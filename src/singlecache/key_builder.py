"""Construtor de chaves de coalescência determinísticas."""

import hashlib
import inspect
import json
from collections.abc import Callable
from typing import Any

from .config import GroupConfig
from .validators import validate_key_prefix


class DefaultKeyBuilder:
    """Construtor de chaves padrão usando SHA256.

    Gera chaves no formato ``{prefix}:{module}.{qualname}:{hash_args}``.

    Os argumentos são ligados à assinatura da função antes do hash, então
    ``f(1)`` e ``f(x=1)`` produzem a mesma chave. ``self`` e ``cls`` são
    ignorados para que instâncias diferentes compartilhem a execução.
    """

    def __init__(self, prefix: str | None = None) -> None:
        """Inicializa o key builder.

        Args:
            prefix: Prefixo das chaves (default: GroupConfig)

        Raises:
            ValueError: Se prefix for vazio
        """
        prefix = GroupConfig.resolve_key_prefix(prefix)
        validate_key_prefix(prefix)
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def build_key(self, func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
        """Constrói a chave para uma chamada de ``func``."""
        module = getattr(func, "__module__", "unknown")
        qualname = getattr(func, "__qualname__", getattr(func, "__name__", "unknown"))
        arguments = self._bind_arguments(func, args, kwargs)
        return f"{self._prefix}:{module}.{qualname}:{self._digest(arguments)}"

    def _bind_arguments(
        self, func: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> dict[str, Any]:
        """Mapeia os argumentos para os nomes dos parâmetros."""
        try:
            bound = inspect.signature(func).bind(*args, **kwargs)
        except (TypeError, ValueError):
            # Assinatura indisponível ou chamada inválida: usa os argumentos crus
            return {"args": list(args), "kwargs": dict(sorted(kwargs.items()))}

        bound.apply_defaults()
        arguments = dict(bound.arguments)
        first = next(iter(inspect.signature(func).parameters), None)
        if first in ("self", "cls"):
            arguments.pop(first, None)
        return arguments

    def _digest(self, arguments: dict[str, Any]) -> str:
        """Calcula hash SHA256 truncado dos argumentos."""
        serialized = json.dumps(self._normalize(arguments), sort_keys=True, default=repr)
        return hashlib.sha256(serialized.encode()).hexdigest()[:16]

    def _normalize(self, obj: Any) -> Any:
        """Normaliza objeto para serialização JSON determinística."""
        if obj is None or isinstance(obj, (bool, int, float, str)):
            return obj
        if isinstance(obj, bytes):
            return obj.hex()
        if isinstance(obj, (list, tuple)):
            return [self._normalize(item) for item in obj]
        if isinstance(obj, dict):
            return {str(k): self._normalize(v) for k, v in obj.items()}
        if isinstance(obj, (set, frozenset)):
            # Ordena pela representação para aceitar tipos mistos
            return sorted((self._normalize(item) for item in obj), key=repr)
        return repr(obj)
