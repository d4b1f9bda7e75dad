"""Decoding of Jira LexoRank strings into sortable decimals.

A LexoRank looks like ``0|hzzzzz:`` or ``1|i0001b:a2``: a bucket digit, a
base-36 rank and an optional base-36 sub-rank. The target system only keeps
seven fractional digits, so the decoded value is rounded accordingly.
"""

import logging
import re
import threading
from decimal import ROUND_HALF_EVEN, Decimal, localcontext

logger = logging.getLogger(__name__)

LEXO_RANK_PATTERN = re.compile(r"^[0-2]\|[0-9a-zA-Z]*(:[0-9a-zA-Z]*)?$")

# Value used for ranks that cannot be decoded; sorts after every valid rank
RANK_MAX = Decimal("79228162514264337593543950335")

RANK_PRECISION = Decimal("0.0000001")

REBALANCE_HINT = (
    "You may need to re-balance the Jira LexoRank, see "
    "https://confluence.atlassian.com/adminjiraserver/managing-lexorank-938847803.html"
)


class LexoRankDecoder:
    """Decodes ranks and remembers what it decoded during one export run.

    Two caches detect suspicious data: the same rank string decoded twice,
    and two different rank strings that round to the same decimal. The first
    string decoded to a given decimal is the one kept in the reverse cache.
    """

    def __init__(self) -> None:
        self._values: dict[str, Decimal] = {}
        self._ranks: dict[Decimal, str] = {}
        self._lock = threading.Lock()

    def decode(self, lexo_rank: str | None) -> Decimal:
        if not lexo_rank or not LEXO_RANK_PATTERN.match(lexo_rank):
            logger.warning("Invalid LexoRank '%s', ranking it last", lexo_rank)
            return RANK_MAX

        with self._lock:
            cached = self._values.get(lexo_rank)
            if cached is not None:
                logger.warning("Duplicate rank '%s' detected. %s", lexo_rank, REBALANCE_HINT)
                return cached

            value = _to_decimal(lexo_rank)
            if value is None:
                logger.warning("LexoRank '%s' has no rank part, ranking it last", lexo_rank)
                return RANK_MAX

            known = self._ranks.get(value)
            if known is None:
                self._ranks[value] = lexo_rank
            elif known != lexo_rank:
                logger.warning(
                    "Ranks '%s' and '%s' both decode to %s. %s",
                    known,
                    lexo_rank,
                    value,
                    REBALANCE_HINT,
                )

            self._values[lexo_rank] = value
            return value

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
            self._ranks.clear()

    def __len__(self) -> int:
        return len(self._values)


def _to_decimal(lexo_rank: str) -> Decimal | None:
    body = lexo_rank.split("|", 1)[1]
    rank_part, _, sub_rank_part = body.partition(":")
    if not rank_part:
        return None

    rank = int(rank_part, 36)
    sub_rank = int(sub_rank_part, 36) if sub_rank_part else 0

    digits = f"{rank}.{sub_rank}"
    with localcontext() as ctx:
        ctx.prec = len(digits) + 16
        return Decimal(digits).quantize(RANK_PRECISION, rounding=ROUND_HALF_EVEN)
