"""Relógio de validade: converte janelas de validade em instantes absolutos.

Os instantes são inteiros em milissegundos desde a época, que é a mesma
granularidade usada pela decisão de join do grupo.
"""

import time
from datetime import timedelta

from .constants import MILLISECONDS_PER_SECOND, NEVER_EXPIRES
from .validators import Validity


def now_ms() -> int:
    """Retorna o instante atual em milissegundos desde a época."""
    return time.time_ns() // 1_000_000


def to_seconds(validity: Validity) -> float:
    """Normaliza a validade para segundos (None conta como zero)."""
    if validity is None:
        return 0.0
    if isinstance(validity, timedelta):
        return validity.total_seconds()
    return float(validity)


def expires_at(validity: Validity, now: int | None = None) -> int:
    """Calcula o instante em que a chamada deixa de aceitar joins.

    Args:
        validity: Janela de validade (segundos ou timedelta). Zero ou None
            significa que a chamada nunca expira enquanto estiver em voo.
        now: Instante atual em milissegundos (default: now_ms())

    Returns:
        Instante absoluto em milissegundos, ou NEVER_EXPIRES. Janelas que
        ultrapassam NEVER_EXPIRES são limitadas a ele.
    """
    seconds = to_seconds(validity)
    if seconds == 0:
        return NEVER_EXPIRES

    if now is None:
        now = now_ms()
    millis = seconds * MILLISECONDS_PER_SECOND
    if millis >= NEVER_EXPIRES - now:
        return NEVER_EXPIRES
    return now + int(millis)


def is_joinable(expiry: int, now: int) -> bool:
    """Indica se uma chamada com a expiração dada ainda aceita joins."""
    return expiry > now
