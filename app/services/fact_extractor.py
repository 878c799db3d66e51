# app/services/fact_extractor.py

import re
import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Optional
from app.models.plan import ExtractedFacts

logger = logging.getLogger(__name__)

UNIT_MULTIPLIERS = {
    "k": 1_000,
    "thousand": 1_000,
    "lakh": 100_000,
    "lakhs": 100_000,
    "lac": 100_000,
    "lacs": 100_000,
    "cr": 10_000_000,
    "crore": 10_000_000,
    "crores": 10_000_000,
}

_AMOUNT = r"(?:rs\.?|inr|₹|\$)?\s*(?P<amount>\d[\d,]*(?:\.\d+)?)\s*(?P<unit>k|thousand|lakhs?|lacs?|crores?|cr)?"
_ANNUAL = (
    r"(?P<period>lpa\b|per\s+annum\b|p\.\s?a\b\.?|pa\b|per\s+year\b|a\s+year\b"
    r"|yearly\b|annually\b|/\s?yr\b|/\s?year\b)"
)

INCOME_PATTERN = re.compile(
    r"(?:income|salary|earn(?:s|ing)?|ctc|make|making)\D{0,30}?" + _AMOUNT + r"\s*" + _ANNUAL,
    re.IGNORECASE
)
EXPENSE_PATTERN = re.compile(
    r"(?:expenses?|spend(?:s|ing)?|spent|costs?|outgoings?)\D{0,30}?" + _AMOUNT + r"\s*" + _ANNUAL,
    re.IGNORECASE
)


class FactExtractor(ABC):
    """Pulls optional monthly income/expense figures out of a user's message"""

    @abstractmethod
    def extract(self, text: Optional[str]) -> ExtractedFacts:
        ...


class RegexFactExtractor(FactExtractor):
    """
    Matches phrasings like "my salary is 12,00,000 per annum" or
    "expenses of 6 lakh a year". Only annual figures are recognised; the
    monthly value is the annual amount integer-divided by 12.
    """

    @staticmethod
    def _monthly(match: Optional[re.Match]) -> Optional[int]:
        if not match:
            return None
        amount = float(match.group("amount").replace(",", ""))
        unit = (match.group("unit") or "").lower()
        if match.group("period").lower() == "lpa" and not unit:
            unit = "lakh"
        annual = int(amount * UNIT_MULTIPLIERS.get(unit, 1))
        return annual // 12

    def extract(self, text: Optional[str]) -> ExtractedFacts:
        if not text:
            return ExtractedFacts()

        facts = ExtractedFacts(
            income=self._monthly(INCOME_PATTERN.search(text)),
            expenses=self._monthly(EXPENSE_PATTERN.search(text))
        )
        logger.info(f"🔎 Extracted facts: income={facts.income}, expenses={facts.expenses}")
        return facts


@lru_cache()
def get_fact_extractor() -> FactExtractor:
    return RegexFactExtractor()
