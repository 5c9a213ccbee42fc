"""
shipyard.infrastructure.extraction - Output Token Extraction
==============================================================

Pulls one structured value out of the free-form output of an external
tool, e.g. the account address printed by ``npx hardhat account``:

    >>> ETHEREUM_ADDRESS.extract("Address: 0xABCDEF0123456789ABCDEF0123456789ABCDEF01 done")
    '0xABCDEF0123456789ABCDEF0123456789ABCDEF01'

Only the first match counts. No match is an ExtractionError: the calling
step cannot continue without the value, so an empty result is never
returned in its place.
"""

from __future__ import annotations

import re
from typing import Union

from shipyard.core.exceptions import ExtractionError


class OutputExtractor:
    """A named pattern for one kind of token.

    Args:
        kind: Human name of the token ("ethereum address"). Used in the
            error message and the UNABLE_TO_PARSE_<KIND> error code.
        pattern: Regular expression. If it has a capture group, the first
            group is returned; otherwise the whole match.
    """

    def __init__(self, kind: str, pattern: Union[str, re.Pattern[str]]) -> None:
        self.kind = kind
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def extract(self, text: str) -> str:
        """Return the first match of the pattern in ``text``.

        Raises:
            ExtractionError: If nothing in ``text`` matches.
        """
        match = self.pattern.search(text)
        if match is None:
            raise ExtractionError(kind=self.kind, pattern=self.pattern.pattern)
        return match.group(1) if self.pattern.groups else match.group(0)

    def __repr__(self) -> str:
        return f"OutputExtractor(kind={self.kind!r}, pattern={self.pattern.pattern!r})"


# Hex tokens must not run on into further hex digits, so the 40-digit
# address pattern never matches the first 40 digits of a 64-digit key.
ETHEREUM_ADDRESS = OutputExtractor(
    "ethereum address",
    r"(?<![0-9a-zA-Z])(0x[a-fA-F0-9]{40})(?![a-fA-F0-9])",
)
PRIVATE_KEY = OutputExtractor(
    "ethereum private key",
    r"(?<![0-9a-zA-Z])(0x[a-fA-F0-9]{64})(?![a-fA-F0-9])",
)
CONTRACT_ADDRESS = OutputExtractor("contract address", ETHEREUM_ADDRESS.pattern)
