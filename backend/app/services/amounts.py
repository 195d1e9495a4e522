"""Dollar-amount heuristics for pre-approval letters and proof-of-funds documents.

Each extractor returns every in-range candidate it finds; ``AmountHeuristic``
pools the candidates of all extractors and reports the largest one. The
assumption is that the largest plausible figure near financial language is the
approved or available amount, which tolerates picking up an unrelated large
number.
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

MIN_AMOUNT = 1000
MAX_AMOUNT = 100000000

CURRENCY_PATTERN = re.compile(r"(?:\$|usd\s*)\s*([0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)(?:\.\d{2})?", re.IGNORECASE)
LOOSE_PATTERN = re.compile(r"\b([0-9]{1,3}(?:,[0-9]{3})+|[0-9]{5,})\b")
CANDIDATE_PATTERN = re.compile(
    r"(?:\$|usd\s*)?\s*([0-9]{1,3}(?:,[0-9]{3})+|[0-9]{5,})(?:\.\d{2})?", re.IGNORECASE
)

DEFAULT_KEYWORDS = (
    "approved",
    "pre-approval",
    "preapproval",
    "loan amount",
    "amount",
    "funds",
    "available",
    "verified",
    "credit",
)

CLASSIFICATIONS = (
    ("loan_amount", re.compile(r"loan amount|amount of your loan|amount of loan|loan is|amount is")),
    ("purchase_price", re.compile(r"purchase price|contract price|sales price|price of the property")),
    ("down_payment", re.compile(r"down payment|downpayment")),
    ("payment", re.compile(r"interest only payment|principal and interest|monthly payment")),
    ("nmls_id", re.compile(r"nmls")),
)


def _to_amount(raw: str) -> Optional[int]:
    try:
        value = int(raw.replace(",", ""))
    except ValueError:
        return None
    if MIN_AMOUNT <= value <= MAX_AMOUNT:
        return value
    return None


def _scan(pattern: re.Pattern, text: str) -> List[int]:
    values = []
    for match in pattern.finditer(text):
        value = _to_amount(match.group(1))
        if value is not None:
            values.append(value)
    return values


class CurrencyAmountExtractor:
    """Numbers marked with "$" or "usd", cents dropped."""

    def extract(self, text: str) -> List[int]:
        if not text:
            return []
        return _scan(CURRENCY_PATTERN, text)


class LooseAmountExtractor:
    """Bare large numbers, for documents that omit the currency symbol."""

    def extract(self, text: str) -> List[int]:
        if not text:
            return []
        return _scan(LOOSE_PATTERN, text)


class KeywordWindowExtractor:
    """Re-runs the currency and loose scans in a window around trigger phrases.

    Only the first occurrence of each phrase is considered.
    """

    def __init__(self, keywords: Sequence[str] = DEFAULT_KEYWORDS, before: int = 40, after: int = 160):
        self.keywords = tuple(k.lower() for k in keywords)
        self.before = before
        self.after = after
        self._inner = (CurrencyAmountExtractor(), LooseAmountExtractor())

    def extract(self, text: str) -> List[int]:
        if not text:
            return []
        lower = text.lower()
        values = []
        for keyword in self.keywords:
            idx = lower.find(keyword)
            if idx == -1:
                continue
            window = text[max(0, idx - self.before):idx + self.after]
            for extractor in self._inner:
                values.extend(extractor.extract(window))
        return values


def default_extractors():
    return [CurrencyAmountExtractor(), LooseAmountExtractor(), KeywordWindowExtractor()]


class AmountHeuristic:
    """Pools candidates from an ordered list of extractors and keeps the max."""

    def __init__(self, extractors=None):
        self.extractors = list(extractors) if extractors is not None else default_extractors()

    def candidates(self, text: str) -> List[int]:
        values = []
        for extractor in self.extractors:
            values.extend(extractor.extract(text))
        return values

    def best(self, text: str) -> Optional[int]:
        values = self.candidates(text)
        return max(values) if values else None


def extract_amount(text: str) -> Optional[int]:
    """Largest plausible dollar amount in the text, or None."""
    return AmountHeuristic().best(text)


def classify_context(context: str) -> str:
    ctx = (context or "").lower()
    for label, pattern in CLASSIFICATIONS:
        if pattern.search(ctx):
            return label
    return "other"


def amount_candidates(text: str) -> List[Dict]:
    """Every in-range number with its surrounding context and a label.

    Diagnostic only; the reported amount is still ``extract_amount``.
    """
    if not text:
        return []
    candidates = []
    for match in CANDIDATE_PATTERN.finditer(text):
        value = _to_amount(match.group(1))
        if value is None:
            continue
        start = max(0, match.start() - 60)
        context = re.sub(r"\s+", " ", text[start:match.start() + 120]).strip()
        candidates.append({
            "value": value,
            "raw": match.group(1),
            "context": context,
            "classification": classify_context(context),
        })
    return candidates
