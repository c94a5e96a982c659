"""
Tests for short code generation strategies.
"""
import string

import pytest

from shorty_app.exceptions import ShortCodeGenerationError
from shorty_app.services import short_code_strategies
from shorty_app.services.short_code_strategies import (
    RandomShortCodeStrategy,
    TokenShortCodeStrategy,
    MAX_SHORT_CODE_LENGTH
)
from shorty_app.services.short_code_factory import (
    ShortCodeFactory,
    ShortCodeStrategyType
)

ALPHANUMERIC = set(string.ascii_letters + string.digits)


class TestRandomStrategy:
    """Test the default random strategy"""

    def test_generates_exact_length(self):
        strategy = RandomShortCodeStrategy(length=6)

        for _ in range(100):
            assert len(strategy.generate()) == 6

    def test_only_letters_and_digits(self):
        strategy = RandomShortCodeStrategy(length=10)

        for _ in range(100):
            assert set(strategy.generate()) <= ALPHANUMERIC

    def test_codes_differ(self):
        """62^6 possible codes; 500 draws should not collide"""
        strategy = RandomShortCodeStrategy(length=6)

        codes = {strategy.generate() for _ in range(500)}

        assert len(codes) == 500

    @pytest.mark.parametrize("length", [0, MAX_SHORT_CODE_LENGTH + 1])
    def test_rejects_lengths_outside_column(self, length):
        with pytest.raises(ValueError):
            RandomShortCodeStrategy(length=length)

    def test_randomness_failure_is_reported(self, monkeypatch):
        def unavailable(_):
            raise NotImplementedError("no randomness source")

        monkeypatch.setattr(short_code_strategies.secrets, "choice", unavailable)

        with pytest.raises(ShortCodeGenerationError):
            RandomShortCodeStrategy().generate()


class TestTokenStrategy:
    """Test the base64 token strategy"""

    def test_at_most_length(self):
        strategy = TokenShortCodeStrategy(length=6)

        for _ in range(100):
            code = strategy.generate()
            assert 0 < len(code) <= 6

    def test_no_base64_symbols(self):
        strategy = TokenShortCodeStrategy(length=10)

        for _ in range(100):
            assert set(strategy.generate()) <= ALPHANUMERIC

    def test_randomness_failure_is_reported(self, monkeypatch):
        def unavailable(_):
            raise OSError("getrandom failed")

        monkeypatch.setattr(short_code_strategies.secrets, "token_bytes", unavailable)

        with pytest.raises(ShortCodeGenerationError):
            TokenShortCodeStrategy().generate()


class TestShortCodeFactory:
    """Test strategy factory"""

    def setup_method(self):
        ShortCodeFactory.clear_instances()

    def test_creates_random_strategy(self):
        strategy = ShortCodeFactory.create_strategy(ShortCodeStrategyType.RANDOM)
        assert isinstance(strategy, RandomShortCodeStrategy)

    def test_creates_token_strategy(self):
        strategy = ShortCodeFactory.create_strategy(ShortCodeStrategyType.TOKEN)
        assert isinstance(strategy, TokenShortCodeStrategy)

    def test_creates_default_from_settings(self):
        """Random with 6 characters unless configured otherwise"""
        strategy = ShortCodeFactory.create_strategy()
        assert isinstance(strategy, RandomShortCodeStrategy)
        assert strategy.length == 6

    def test_instances_are_cached(self):
        first = ShortCodeFactory.create_strategy(ShortCodeStrategyType.TOKEN)
        second = ShortCodeFactory.create_strategy(ShortCodeStrategyType.TOKEN)
        assert first is second
