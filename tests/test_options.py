from __future__ import annotations

import math
from fractions import Fraction

import pytest

from kvmemo.errors import ConfigurationError
from kvmemo.options import DEFAULT_BINDING, merge_options, normalize_prefix, resolve_strategy
from kvmemo.serialization import default_get, default_set


def fetch_items() -> list[int]:
    return []


class TestMergeOptions:
    def test_defaults_applied(self) -> None:
        opts = merge_options({"ttl": 60}, None, fetch_items)
        assert opts.binding == DEFAULT_BINDING
        assert opts.prefix == ""
        assert opts.key == "fetch_items"
        assert opts.get is default_get
        assert opts.set is default_set

    def test_overrides_win(self) -> None:
        opts = merge_options({"ttl": 60, "prefix": "a"}, {"ttl": 120, "prefix": "b"}, fetch_items)
        assert opts.ttl == 120
        assert opts.prefix == "b"

    def test_merge_is_shallow(self) -> None:
        def key_a() -> str:
            return "a"

        opts = merge_options({"ttl": 60, "key": key_a}, {"key": "static"}, fetch_items)
        assert opts.key == "static"

    @pytest.mark.parametrize("ttl", [59, 59.999, -1, 0, math.inf, math.nan, "60", None, True, [60]])
    def test_invalid_ttl_rejected(self, ttl: object) -> None:
        with pytest.raises(ConfigurationError, match="ttl"):
            merge_options({}, {"ttl": ttl}, fetch_items)

    @pytest.mark.parametrize("ttl", [60, 60.0, 3600, Fraction(121, 2)])
    def test_valid_ttl_accepted(self, ttl: object) -> None:
        assert merge_options({}, {"ttl": ttl}, fetch_items).ttl == ttl

    @pytest.mark.parametrize("binding", [123, ["KV"], b"KV"])
    def test_invalid_binding_rejected(self, binding: object) -> None:
        with pytest.raises(ConfigurationError, match="binding"):
            merge_options({"ttl": 60}, {"binding": binding}, fetch_items)

    @pytest.mark.parametrize("binding", [None, "", 0, False])
    def test_falsy_binding_uses_default(self, binding: object) -> None:
        assert merge_options({"ttl": 60, "binding": binding}, None, fetch_items).binding == "KV"

    @pytest.mark.parametrize("key", [123, b"key", ["k"]])
    def test_invalid_key_rejected(self, key: object) -> None:
        with pytest.raises(ConfigurationError, match="key"):
            merge_options({"ttl": 60}, {"key": key}, fetch_items)

    @pytest.mark.parametrize("key", [None, "", 0])
    def test_falsy_key_uses_function_name(self, key: object) -> None:
        assert merge_options({"ttl": 60}, {"key": key}, fetch_items).key == "fetch_items"

    def test_lambda_needs_key(self) -> None:
        with pytest.raises(ConfigurationError, match="key"):
            merge_options({"ttl": 60}, None, lambda x: x * 2)
        assert merge_options({"ttl": 60}, {"key": "double"}, lambda x: x * 2).key == "double"

    def test_nameless_callable_needs_key(self) -> None:
        class Nameless:
            def __call__(self) -> int:
                return 1

        with pytest.raises(ConfigurationError):
            merge_options({"ttl": 60}, None, Nameless())
        assert merge_options({"ttl": 60}, {"key": "k"}, Nameless()).key == "k"

    def test_non_string_prefix_becomes_empty(self) -> None:
        assert merge_options({"ttl": 60, "prefix": 123}, None, fetch_items).prefix == ""

    def test_unknown_option_ignored(self) -> None:
        opts = merge_options({"ttl": 60}, {"expiry": 10}, fetch_items)
        assert opts.ttl == 60
        assert not hasattr(opts, "expiry")

    def test_options_are_frozen(self) -> None:
        opts = merge_options({"ttl": 60}, None, fetch_items)
        with pytest.raises(AttributeError):
            opts.ttl = 120  # type: ignore[misc]

    def test_configuration_error_is_type_error(self) -> None:
        with pytest.raises(TypeError):
            merge_options({}, {}, fetch_items)


class TestPolicies:
    @pytest.mark.parametrize(("prefix", "expected"), [("p:", "p:"), ("", ""), (None, ""), (1, ""), (b"p", "")])
    def test_normalize_prefix(self, prefix: object, expected: str) -> None:
        assert normalize_prefix(prefix) == expected

    def test_resolve_strategy(self) -> None:
        def custom() -> None: ...

        assert resolve_strategy(custom, default_get) is custom
        assert resolve_strategy(None, default_get) is default_get
        assert resolve_strategy("get", default_get) is default_get
