"""Tokenizer service for estimating the token cost of context text."""

import logging
import math
from typing import Dict, Optional, Union, List
from abc import ABC, abstractmethod

import tiktoken

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


class BaseTokenizer(ABC):
    """Abstract base class for tokenizers."""

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Count tokens in the given text."""
        pass


class HeuristicTokenizer(BaseTokenizer):
    """Character-length estimate, roughly four characters per token."""

    def __init__(self, avg_chars_per_token: float = 4.0):
        self.avg_chars_per_token = avg_chars_per_token

    def count_tokens(self, text: str) -> int:
        if not text:
            return 0
        return math.ceil(len(text) / self.avg_chars_per_token)


class TiktokenTokenizer(BaseTokenizer):
    """Subword tokenizer backed by a tiktoken encoding.

    Construction raises whatever tiktoken raises when the encoding cannot be
    loaded (unknown name, missing BPE file, no network for the first download).
    """

    def __init__(self, encoding_name: str = "cl100k_base"):
        self.encoding = tiktoken.get_encoding(encoding_name)

    def count_tokens(self, text: str) -> int:
        return len(self.encoding.encode(text))


class TokenizerService:
    """Token cost estimator with a precise mode and a heuristic fallback.

    The precise tokenizer is built once. If that fails the service stays in
    heuristic mode for its whole lifetime. If a single encode call fails, only
    that call is answered by the heuristic.
    """

    def __init__(self, backend: str = "auto", encoding_name: str = "cl100k_base"):
        """
        Initialize tokenizer service.

        Args:
            backend: Tokenizer backend ('auto', 'tiktoken', 'heuristic').
                'auto' falls back to the heuristic when tiktoken cannot be
                initialized, 'tiktoken' raises ConfigError instead.
            encoding_name: tiktoken encoding used by the precise mode
        """
        self.heuristic = HeuristicTokenizer()
        self.precise: Optional[TiktokenTokenizer] = None
        self.encoding_name = encoding_name

        if backend not in ("auto", "tiktoken", "heuristic"):
            raise ValueError(f"Unknown tokenizer backend: {backend}")

        if backend == "heuristic":
            return

        try:
            self.precise = TiktokenTokenizer(encoding_name)
            logger.debug("Tokenizer initialized", extra={"encoding": encoding_name})
        except Exception as e:
            if backend == "tiktoken":
                raise ConfigError(f"Cannot load tiktoken encoding '{encoding_name}': {e}") from e
            logger.warning(
                "Failed to initialize tokenizer, falling back to estimation: %s", e,
                extra={"encoding": encoding_name}
            )

    @property
    def mode(self) -> str:
        """Either 'precise' or 'heuristic'."""
        return "precise" if self.precise is not None else "heuristic"

    def estimate(self, text: str) -> int:
        """
        Estimate the token cost of a string.

        Args:
            text: Text to measure

        Returns:
            Non-negative token count
        """
        if self.precise is not None:
            try:
                return self.precise.count_tokens(text)
            except Exception as e:
                logger.warning("Token encoding failed, using fallback estimation: %s", e)
        return self.heuristic.count_tokens(text)

    def count_tokens(self, text: Union[str, List[str], Dict[str, str]]) -> int:
        """
        Count tokens in text.

        Args:
            text: String, list of strings, or dict of strings

        Returns:
            Total token count
        """
        if isinstance(text, str):
            return self.estimate(text)
        elif isinstance(text, list):
            return sum(self.estimate(item) for item in text)
        elif isinstance(text, dict):
            total = 0
            for key, value in text.items():
                total += self.estimate(str(key))
                total += self.estimate(str(value))
            return total
        else:
            return self.estimate(str(text))

    def get_tokenizer_info(self) -> Dict[str, Union[str, bool]]:
        """Get information about the current tokenizer."""
        info = {
            "mode": self.mode,
            "backend": type(self.precise or self.heuristic).__name__,
            "available": self.precise is not None
        }
        if self.precise is not None:
            info["encoding_name"] = self.precise.encoding.name
        return info
