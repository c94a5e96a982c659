"""
Short code generation strategies for the URL shortener.
Uses Strategy Pattern to allow different generation algorithms.

Both strategies draw from the operating system's CSPRNG (`secrets`) so codes
cannot be predicted from earlier ones. Neither checks the database: a
collision surfaces as a unique-constraint error when the row is inserted.
"""

import base64
import secrets
import string
from abc import ABC, abstractmethod

from shorty_app.exceptions import ShortCodeGenerationError

# Width of the short_code column
MAX_SHORT_CODE_LENGTH = 10


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    def __init__(self, length: int = 6):
        if not 1 <= length <= MAX_SHORT_CODE_LENGTH:
            raise ValueError(
                f"Short code length must be between 1 and {MAX_SHORT_CODE_LENGTH}, got {length}"
            )
        self.length = length

    def generate(self) -> str:
        """
        Generate a short code.

        Returns:
            A string of letters and digits, at most `length` long

        Raises:
            ShortCodeGenerationError: if the randomness source is unavailable
        """
        try:
            return self._generate()
        except (OSError, NotImplementedError) as e:
            raise ShortCodeGenerationError(f"Randomness source unavailable: {e}") from e

    @abstractmethod
    def _generate(self) -> str:
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Picks each character independently from [A-Za-z0-9].

    Always exactly `length` characters: 62^6 (about 5.7e10) codes at the default length.
    """

    CHARACTERS = string.ascii_letters + string.digits

    def _generate(self) -> str:
        return ''.join(secrets.choice(self.CHARACTERS) for _ in range(self.length))


class TokenShortCodeStrategy(ShortCodeStrategy):
    """
    URL-safe base64 of random bytes with the symbol characters removed.

    `length` bytes encode to more than `length` characters, so the result is
    usually exactly `length` long; it is shorter only when the encoding is
    dominated by '-' and '_'.
    """

    STRIPPED = str.maketrans('', '', '-_=')

    def _generate(self) -> str:
        raw = secrets.token_bytes(self.length)
        encoded = base64.urlsafe_b64encode(raw).decode('ascii')
        return encoded.translate(self.STRIPPED)[:self.length]
