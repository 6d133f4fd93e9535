"""singlecache: coalescência de chamadas concorrentes com janela de validade.

Protege um recurso (banco de dados, serviço remoto) de consultas
duplicadas concorrentes: chamadas para a mesma chave que chegam enquanto
uma execução está em voo e dentro da validade recebem o resultado dessa
execução em vez de repeti-la. Nenhum resultado é guardado depois que a
execução termina.

Uso básico:
    ```python
    from singlecache import Group

    group = Group()

    # Bloqueante
    value, error, shared = group.do("user:42", 5, lambda: db.load_user(42))

    # Não bloqueante
    future = group.do_chan("user:42", 5, lambda: db.load_user(42))
    result = future.result()

    # asyncio
    result = await group.do_async("user:42", 5, lambda: db.load_user(42))
    result = await group.do_coroutine("user:42", 5, lambda: api.load_user(42))

    # Novas chamadas não fazem mais join na execução atual
    group.forget("user:42")
    ```

Como decorator:
    ```python
    from singlecache import coalesce

    @coalesce(validity=5)
    def load_user(user_id: int) -> dict:
        return db.load_user(user_id)
    ```
"""

__version__ = "0.1.0"

# Núcleo
from .call import Result
from .clock import expires_at, now_ms
from .config import GroupConfig
from .constants import NEVER_EXPIRES

# Decorator
from .decorator import CoalescedWrapper, coalesce

# Exceções
from .exceptions import (
    ConfigurationError,
    InvalidKeyError,
    InvalidOperationError,
    InvalidValidityError,
    SingleCacheError,
)
from .executor import get_thread_pool, shutdown_thread_pool
from .group import Group

# Geração de chaves
from .key_builder import DefaultKeyBuilder

# Métricas
from .metrics import (
    CoalescingStats,
    InMemoryMetrics,
    KeyStats,
    NoOpMetrics,
    OpenTelemetryMetrics,
)

# Protocols (para extensibilidade)
from .protocols import CoalescingMetrics, KeyBuilder

__all__ = [
    # Núcleo
    "Group",
    "Result",
    "expires_at",
    "now_ms",
    "NEVER_EXPIRES",
    # Configuração
    "GroupConfig",
    "get_thread_pool",
    "shutdown_thread_pool",
    # Decorator
    "coalesce",
    "CoalescedWrapper",
    # Geração de chaves
    "DefaultKeyBuilder",
    "KeyBuilder",
    # Métricas
    "CoalescingMetrics",
    "CoalescingStats",
    "KeyStats",
    "NoOpMetrics",
    "InMemoryMetrics",
    "OpenTelemetryMetrics",
    # Exceções
    "SingleCacheError",
    "InvalidKeyError",
    "InvalidValidityError",
    "InvalidOperationError",
    "ConfigurationError",
]
