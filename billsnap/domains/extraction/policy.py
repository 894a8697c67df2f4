"""
Prompt Policy - Extraction and categorization rules.

One rules table drives both the instruction text sent to the model and the
deterministic text classifiers used on local OCR output, so the two paths
agree on what each field means.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from .models import AMOUNT_SENTINEL, BILL_NO_SENTINEL, ExtractionSchema, Purpose

__all__ = [
    "CATEGORY_RULES",
    "BILL_NO_LABELS",
    "build_system_prompt",
    "build_user_prompt",
    "classify_purpose",
    "extract_amount",
    "extract_bill_no",
    "fields_from_text",
]


@dataclass(frozen=True)
class CategoryRule:
    """Keywords associated with one purpose category."""

    purpose: Purpose
    summary: str
    keywords: tuple[str, ...]


CATEGORY_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        Purpose.CONVEYANCE,
        "taxi, auto, rideshare, parking, local transport",
        (
            "taxi", "cab", "auto", "autorickshaw", "rickshaw", "uber", "ola",
            "lyft", "rapido", "rideshare", "ride", "parking", "toll",
            "local transport",
        ),
    ),
    CategoryRule(
        Purpose.TRAIN,
        "railway, metro, rail booking",
        ("railway", "railways", "irctc", "rail", "metro", "train", "pnr"),
    ),
    CategoryRule(
        Purpose.BUS,
        "bus, shuttle",
        ("bus", "shuttle", "redbus", "ksrtc", "msrtc"),
    ),
    CategoryRule(
        Purpose.FOOD,
        "restaurant, cafe, food delivery, meals",
        (
            "restaurant", "cafe", "café", "coffee", "food", "meal", "swiggy",
            "zomato", "dine", "dining", "bistro", "bakery", "pizza", "burger",
            "breakfast", "lunch", "dinner",
        ),
    ),
    CategoryRule(
        Purpose.HOTEL,
        "accommodation, lodging, room charges",
        (
            "hotel", "inn", "lodge", "lodging", "resort", "accommodation",
            "room charge", "room rent", "check-in", "checkout", "oyo",
            "airbnb", "guest house",
        ),
    ),
    CategoryRule(
        Purpose.PROJECT_EXPENSE,
        "office supplies, equipment, software, tools, materials",
        (
            "office supplies", "stationery", "equipment", "software",
            "license", "licence", "tools", "hardware", "materials", "printer",
            "toner", "laptop", "subscription",
        ),
    ),
)

# Identifier labels, most preferred first.
BILL_NO_LABELS: tuple[tuple[str, str], ...] = (
    ("invoice", r"invoice"),
    ("receipt", r"receipt|rcpt"),
    ("bill", r"bill"),
    ("order", r"order"),
    ("transaction", r"transaction|txn"),
)

FINAL_TOTAL_LINE = re.compile(
    r"\b(grand[ \t]*total|net[ \t]*payable|amount[ \t]*payable|total[ \t]*amount"
    r"|amount[ \t]*due|total[ \t]*due|net[ \t]*amount|total[ \t]*payable)\b",
    re.IGNORECASE,
)
TOTAL_LINE = re.compile(r"\b(total|amount[ \t]*paid|fare)\b", re.IGNORECASE)
SUBTOTAL_LINE = re.compile(r"\bsub[ \t-]*total\b", re.IGNORECASE)
AMOUNT_TOKEN = re.compile(
    r"(?:(?:₹|\$|€|£|¥|\bRs\.?|\bINR|\bUSD|\bEUR)[ \t]?)?"
    # date and time parts (10/03/2024, 10.03.2024, 12:30) are not amounts
    r"(?<!\d)(?<!\d[.,/\-:])(?:\d{1,3}(?:,\d{2,3})+|\d+)(?:\.\d{1,2})?(?![\d,]*\d)(?![/\-:.]\d)",
    re.IGNORECASE,
)
AMOUNT_NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")

SYSTEM_PROMPT_TEMPLATE = """You are an expert receipt and bill reader with perfect accuracy.

Extract exactly four fields from the image.

AMOUNT:
- Use the FINAL / GRAND total, never a subtotal.
- If several totals appear, use the largest / final one.
- Keep the currency symbol exactly as printed (e.g. "₹245.00", "$12.50").
- If no total is found, return "{amount_sentinel}".

BILL_NO:
- Look for identifiers in this order: {bill_labels}.
- Copy it exactly as printed: keep case, separators and leading zeros.
- If no identifier is found, return "{bill_sentinel}".

PURPOSE (choose exactly one):
{category_lines}
- {other}: anything not matching the categories above.
- If the merchant context is ambiguous or matches several categories equally, choose "{other}".

RAW_TEXT:
- Transcribe every piece of visible text, even if partially obscured.
- Follow the document's reading order, top to bottom.
- Only correct OCR confusions that are unambiguous from context (e.g. "0" vs "O", "1" vs "I", "5" vs "S").

Never leave bill_no or amount empty; use the values given above when nothing is found."""

USER_PROMPT = (
    "Extract the bill number, final amount, expense purpose and all visible text "
    "from this receipt image."
)


def build_system_prompt() -> str:
    """Render the instruction text. Same output on every call."""
    category_lines = "\n".join(
        f'- {rule.purpose.value}: {rule.summary} (keywords: {", ".join(rule.keywords)})'
        for rule in CATEGORY_RULES
    )
    return SYSTEM_PROMPT_TEMPLATE.format(
        amount_sentinel=AMOUNT_SENTINEL,
        bill_sentinel=BILL_NO_SENTINEL,
        bill_labels=" > ".join(name for name, _ in BILL_NO_LABELS),
        category_lines=category_lines,
        other=Purpose.OTHER.value,
    )


def build_user_prompt() -> str:
    """User turn sent alongside the image."""
    return USER_PROMPT


@lru_cache
def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    parts = (re.escape(part) for part in keyword.split())
    return re.compile(r"(?<!\w)" + r"\s+".join(parts) + r"(?!\w)", re.IGNORECASE)


def classify_purpose(text: str) -> Purpose:
    """
    Pick the category whose keywords appear most in text.

    Scores count distinct matching keywords. No match, or a tie for the top
    score, resolves to Other.
    """
    scores: dict[Purpose, int] = {}
    for rule in CATEGORY_RULES:
        score = sum(1 for kw in rule.keywords if _keyword_pattern(kw).search(text))
        if score:
            scores[rule.purpose] = score

    if not scores:
        return Purpose.OTHER

    best = max(scores.values())
    leaders = [purpose for purpose, score in scores.items() if score == best]
    if len(leaders) > 1:
        return Purpose.OTHER
    return leaders[0]


def _amount_value(token: str) -> float:
    number = AMOUNT_NUMBER.search(token)
    return float(number.group(0).replace(",", "")) if number else 0.0


def _amounts_on_lines(lines: list[str]) -> list[str]:
    tokens: list[str] = []
    for line in lines:
        tokens.extend(m.group(0).strip() for m in AMOUNT_TOKEN.finditer(line))
    return tokens


def extract_amount(text: str) -> str:
    """
    Final total from receipt text, currency symbol kept.

    Grand-total style lines win over plain "total" lines; subtotal lines are
    ignored. Among candidates the largest value wins. Returns "0" when no
    total line carries a number.
    """
    final_lines: list[str] = []
    total_lines: list[str] = []
    for line in text.splitlines():
        if SUBTOTAL_LINE.search(line) and not FINAL_TOTAL_LINE.search(line):
            continue
        if FINAL_TOTAL_LINE.search(line):
            final_lines.append(line)
        elif TOTAL_LINE.search(line):
            total_lines.append(line)

    for lines in (final_lines, total_lines):
        candidates = _amounts_on_lines(lines)
        if candidates:
            return max(candidates, key=_amount_value)
    return AMOUNT_SENTINEL


@lru_cache
def _bill_no_pattern(label: str) -> re.Pattern[str]:
    return re.compile(
        rf"\b(?:{label})\b[ \t]*(?:no\b\.?|number\b|num\b|id\b|#)?[ \t]*[:#.\-]?[ \t]*"
        r"(?P<value>[A-Za-z0-9][A-Za-z0-9\-/_]*)",
        re.IGNORECASE,
    )


def extract_bill_no(text: str) -> str:
    """
    Identifier from receipt text, exactly as printed.

    Labels are tried in BILL_NO_LABELS order; a value must contain at least
    one digit. Returns "N/A" when nothing qualifies.
    """
    for _, label in BILL_NO_LABELS:
        for match in _bill_no_pattern(label).finditer(text):
            value = match.group("value")
            if any(ch.isdigit() for ch in value):
                return value
    return BILL_NO_SENTINEL


def fields_from_text(text: str) -> ExtractionSchema:
    """Build an ExtractionSchema from plain text using the rules above."""
    return ExtractionSchema(
        bill_no=extract_bill_no(text),
        amount=extract_amount(text),
        purpose=classify_purpose(text),
        raw_text=text,
    )
