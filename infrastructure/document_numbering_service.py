# infrastructure/document_numbering_service.py
"""
Sequential numbering for offers and invoices.

Format: {prefix}-{counter:0{width}d}
Example: BP-2248-06 (prefix BP-2248, counter 6, width 2)

The next counter is the highest suffix already stored for the prefix plus
one, or the configured seed when nothing matches. Entries that do not match
the pattern are ignored. Reading the maximum and inserting are two steps, so
the number columns are UNIQUE and DocumentService retries on conflict.
"""

import re
from typing import Iterable, Optional

from infrastructure.database import Database
from infrastructure.logging_service import get_module_logger

logger = get_module_logger("Numbering", "numbering.log")

DEFAULT_SEED = 2
DEFAULT_WIDTH = 2


def next_number(existing_numbers: Iterable[str], prefix: str,
                seed: int = DEFAULT_SEED, width: int = DEFAULT_WIDTH) -> str:
    """Next free number for `prefix` given the numbers already in use."""
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    suffixes = []
    for number in existing_numbers:
        match = pattern.match(number or "")
        if match:
            suffixes.append(int(match.group(1)))
        else:
            logger.detail(f"Ignored non-matching number '{number}' for prefix {prefix}")

    counter = max(suffixes) + 1 if suffixes else seed
    return f"{prefix}-{counter:0{width}d}"


class DocumentNumberingService:
    """Computes the next offer/invoice number from the numbers stored in the database."""

    def __init__(self, db: Database, seed: int = DEFAULT_SEED, width: int = DEFAULT_WIDTH):
        self.db = db
        self.seed = seed
        self.width = width

    @classmethod
    def from_config(cls, db: Database, config) -> 'DocumentNumberingService':
        return cls(db, seed=config.get_number_seed(), width=config.get_number_width())

    def next_invoice_number(self, prefix: str) -> str:
        number = next_number(self.db.list_invoice_numbers(prefix), prefix, self.seed, self.width)
        logger.info(f"Next invoice number for {prefix}: {number}")
        return number

    def next_offer_number(self, prefix: str) -> str:
        number = next_number(self.db.list_offer_numbers(prefix), prefix, self.seed, self.width)
        logger.info(f"Next offer number for {prefix}: {number}")
        return number

    def current_counter(self, prefix: str, kind: str = "invoice") -> Optional[int]:
        """Highest suffix in use for the prefix, None when the sequence is empty."""
        numbers = self.db.list_invoice_numbers(prefix) if kind == "invoice" else self.db.list_offer_numbers(prefix)
        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
        suffixes = [int(m.group(1)) for m in (pattern.match(n) for n in numbers) if m]
        return max(suffixes) if suffixes else None
