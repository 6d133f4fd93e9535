"""Testes para o construtor de chaves."""

import pytest

from singlecache.config import GroupConfig
from singlecache.key_builder import DefaultKeyBuilder


def lookup(user_id: int, include_posts: bool = False) -> None:
    pass


class Repository:
    def find(self, user_id: int) -> None:
        pass


class TestDefaultKeyBuilder:
    """Testes para DefaultKeyBuilder."""

    def test_key_format(self) -> None:
        """Deve gerar chave prefix:module.qualname:hash."""
        builder = DefaultKeyBuilder(prefix="users")

        key = builder.build_key(lookup, (1,), {})
        prefix, path, digest = key.split(":")

        assert prefix == "users"
        assert path == f"{__name__}.lookup"
        assert len(digest) == 16

    def test_deterministic(self) -> None:
        builder = DefaultKeyBuilder(prefix="p")

        assert builder.build_key(lookup, (1,), {}) == builder.build_key(lookup, (1,), {})

    def test_positional_and_keyword_match(self) -> None:
        """f(1) e f(user_id=1) devem gerar a mesma chave."""
        builder = DefaultKeyBuilder(prefix="p")

        assert builder.build_key(lookup, (1,), {}) == builder.build_key(lookup, (), {"user_id": 1})

    def test_defaults_applied(self) -> None:
        builder = DefaultKeyBuilder(prefix="p")

        assert builder.build_key(lookup, (1,), {}) == builder.build_key(lookup, (1, False), {})

    def test_different_arguments_differ(self) -> None:
        builder = DefaultKeyBuilder(prefix="p")

        assert builder.build_key(lookup, (1,), {}) != builder.build_key(lookup, (2,), {})

    def test_self_ignored(self) -> None:
        """Instâncias diferentes devem compartilhar a chave."""
        builder = DefaultKeyBuilder(prefix="p")

        assert builder.build_key(Repository.find, (Repository(), 1), {}) == builder.build_key(
            Repository.find, (Repository(), 1), {}
        )

    def test_unbindable_arguments_fall_back(self) -> None:
        """Argumentos que não casam com a assinatura ainda geram chave."""
        builder = DefaultKeyBuilder(prefix="p")

        key = builder.build_key(lookup, (1, 2, 3), {"extra": {1, "a"}})

        assert key.startswith("p:")

    def test_unhashable_and_custom_values(self) -> None:
        builder = DefaultKeyBuilder(prefix="p")

        key = builder.build_key(lookup, ({"a": [1, b"x"]},), {"include_posts": object})

        assert key.startswith("p:")

    def test_prefix_from_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(GroupConfig.ENV_KEY_PREFIX, "env-prefix")

        assert DefaultKeyBuilder().prefix == "env-prefix"

    def test_empty_prefix_rejected(self) -> None:
        with pytest.raises(ValueError):
            DefaultKeyBuilder(prefix="  ")
