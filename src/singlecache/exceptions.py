"""Exceções do singlecache.

Sinalizam apenas uso incorreto da biblioteca. Erros da operação
coalescida nunca são embrulhados: chegam intactos a todos os waiters.
"""


class SingleCacheError(Exception):
    """Erro base do singlecache."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class InvalidKeyError(SingleCacheError, TypeError):
    """Chave de coalescência com tipo inválido."""

    pass


class InvalidValidityError(SingleCacheError, ValueError):
    """Janela de validade negativa ou de tipo inválido."""

    pass


class InvalidOperationError(SingleCacheError, TypeError):
    """Operação informada não é chamável."""

    pass


class ConfigurationError(SingleCacheError, ValueError):
    """Valor inválido em variável de ambiente de configuração."""

    pass
