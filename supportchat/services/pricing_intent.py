"""
Pricing-intent heuristic.

Decides once per user turn whether the answer should be followed by the
lead-capture form. Kept behind a plain `text -> bool` callable so a
classifier can replace it without touching the widget.
"""

from typing import Callable, Iterable

IntentDetector = Callable[[str], bool]

PRICE_KEYWORDS = (
    "price",
    "pricing",
    "cost",
    "rate",
    "fee",
    "charge",
    "quote",
    "estimate",
    "how much",
)


def matches_keywords(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match against any keyword."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def is_pricing_query(text: str) -> bool:
    """True iff the lower-cased text contains a pricing keyword."""
    return matches_keywords(text, PRICE_KEYWORDS)
