"""
Rule-based order field extractors.

Each extractor is a pure function over decoded body text. Patterns are
tried in order and the first match wins; no match yields a default
(``None``, ``0``, empty list) rather than an error. Extractors that read
the body are parameterized by :class:`ContentKind`.
"""
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from bs4 import BeautifulSoup

from wrapped.schemas import MAX_CENTS, ContentKind, Fees, OrderItem

_AMOUNT = r"([\d,]+\.?\d*)"

# ---------------------------------------------------------------------------
# Pattern tables
# ---------------------------------------------------------------------------

SUBJECT_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"Final receipt for .+ from (.+)$", re.IGNORECASE),
    re.compile(r"Order Confirmation for .+ from (.+)$", re.IGNORECASE),
    re.compile(r"Your .+ order from (.+)$", re.IGNORECASE),
    re.compile(r"Receipt from (.+)$", re.IGNORECASE),
]

PLAIN_ITEM_PATTERNS: list[re.Pattern[str]] = [
    # "1x Chicken Burrito Bowl $12.99" (price may sit on the next line)
    re.compile(r"(\d+)x\s+([^\n$]+?)\s*\$" + _AMOUNT),
    # "2 × Spicy Tuna Bowl $15.50"; Ã— is × decoded as cp1252
    re.compile(r"(\d+)\s*(?:×|Ã—)\s*([^\n$]+?)\s*\$" + _AMOUNT),
]

_HTML_QTY_TAG = r"<(?:b|strong)[^>]*>\s*\d+\s*(?:x|×)\s*</(?:b|strong)>"

HTML_ITEM_PATTERN = re.compile(
    r"<(b|strong)[^>]*>\s*(\d+)\s*(?:x|×)\s*</\1>"
    r"((?:(?!" + _HTML_QTY_TAG + r").)*?)"
    r"\$\s*([\d,]+\.\d{2})",
    re.IGNORECASE | re.DOTALL,
)

TOTAL_PATTERNS: dict[ContentKind, list[re.Pattern[str]]] = {
    ContentKind.PLAIN_TEXT: [
        re.compile(r"Final total charged\s*\$?" + _AMOUNT, re.IGNORECASE),
        re.compile(r"Total:\s*\$?" + _AMOUNT, re.IGNORECASE),
        re.compile(r"ESTIMATED TOTAL:\s*\$?" + _AMOUNT, re.IGNORECASE),
        re.compile(r"Grand Total\s*\$?" + _AMOUNT, re.IGNORECASE),
        re.compile(r"Order Total\s*\$?" + _AMOUNT, re.IGNORECASE),
    ],
    ContentKind.HTML: [
        re.compile(
            r"Final total charged\s*(?:<[^>]+>\s*)*\$?" + _AMOUNT, re.IGNORECASE
        ),
        re.compile(
            r">\s*(?:Estimated\s+)?Total:?\s*(?:<[^>]+>\s*)*\$([\d,]+\.\d{2})",
            re.IGNORECASE,
        ),
    ],
}

ADDRESS_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        r"Your receipt\s+(.+?,\s*[A-Z]{2}\s*\d{5}(?:-\d{4})?,?\s*USA?)", re.IGNORECASE
    ),
    re.compile(
        r"Deliver(?:ed)? to[:\s]+(.+?,\s*[A-Z]{2}\s*\d{5}(?:-\d{4})?)", re.IGNORECASE
    ),
    re.compile(
        r"(\d+[^,\n]+,\s*[^,\n]+,\s*[A-Z]{2}\s*\d{5}(?:-\d{4})?,?\s*USA?)",
        re.IGNORECASE,
    ),
]

# fee name -> label regex, shared by both content kinds
FEE_LABELS: dict[str, str] = {
    "subtotal": r"Subtotal",
    "tax": r"Tax",
    "delivery_fee": r"Delivery fee",
    "service_fee": r"Service\s*fee",
    "tip": r"(?:Dasher\s*)?tip",
}


def _fee_pattern(label: str, kind: ContentKind) -> re.Pattern[str]:
    if kind is ContentKind.HTML:
        # "<td>Tax</td> ... <p>$2.31</p>" within one table row
        return re.compile(
            r">\s*" + label + r"\s*</td>(?:(?!</tr>).)*?\$?([\d,]+\.\d{2})\s*</p>",
            re.IGNORECASE | re.DOTALL,
        )
    return re.compile(label + r"\s*\$?" + _AMOUNT, re.IGNORECASE)


FEE_PATTERNS: dict[ContentKind, dict[str, re.Pattern[str]]] = {
    kind: {name: _fee_pattern(label, kind) for name, label in FEE_LABELS.items()}
    for kind in ContentKind
}

# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------

_TRAILING_PUNCT = re.compile(r"[^a-zA-Z0-9)\s]+$")
_WHITESPACE = re.compile(r"\s+")


def parse_amount(raw: str | None) -> int | None:
    """Convert a dollar string such as ``"1,234.50"`` to cents.

    Thousands separators and ``$`` are ignored; rounding is half-up.
    Returns None when the text is not a number or does not fit in
    :data:`MAX_CENTS`.
    """
    if not raw:
        return None
    cleaned = re.sub(r"[$,\s]", "", raw)
    try:
        dollars = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not dollars.is_finite() or abs(dollars * 100) > MAX_CENTS:
        return None
    return int((dollars * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clean_item_name(name: str) -> str:
    name = _WHITESPACE.sub(" ", name).strip()
    return _TRAILING_PUNCT.sub("", name).strip()


def _html_fragment_text(fragment: str) -> str:
    """First visible text run of an HTML fragment, entities unescaped."""
    soup = BeautifulSoup(fragment, "html.parser")
    return next(soup.stripped_strings, "")


def _make_item(quantity: str, name: str, price: str) -> OrderItem | None:
    cents = parse_amount(price)
    name = clean_item_name(name)
    if not name or not cents or cents <= 0:
        return None
    qty = max(int(quantity), 1)
    return OrderItem(name=name, quantity=qty, price=cents)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_restaurant_from_subject(subject: str | None) -> str | None:
    """Restaurant name from a receipt subject line, or None."""
    subject = (subject or "").strip()
    for pattern in SUBJECT_PATTERNS:
        m = pattern.search(subject)
        if m:
            return m.group(1).strip()
    return None


def extract_items(text: str, kind: ContentKind = ContentKind.PLAIN_TEXT) -> list[OrderItem]:
    """Every ``{qty}x {name} ${price}`` line item found in *text*."""
    items: list[OrderItem] = []

    if kind is ContentKind.HTML:
        for m in HTML_ITEM_PATTERN.finditer(text):
            item = _make_item(m.group(2), _html_fragment_text(m.group(3)), m.group(4))
            if item is not None:
                items.append(item)
        return items

    for pattern in PLAIN_ITEM_PATTERNS:
        for m in pattern.finditer(text):
            item = _make_item(m.group(1), m.group(2), m.group(3))
            if item is not None:
                items.append(item)
    return items


def has_html_items(html: str) -> bool:
    """True when *html* carries the bolded-quantity item markup."""
    return bool(html) and HTML_ITEM_PATTERN.search(html) is not None


def extract_total(text: str, kind: ContentKind = ContentKind.PLAIN_TEXT) -> int:
    """Grand total in cents; 0 when no pattern matches."""
    for pattern in TOTAL_PATTERNS[kind]:
        m = pattern.search(text)
        if m:
            cents = parse_amount(m.group(1))
            if cents is not None:
                return cents
    return 0


def extract_address(text: str) -> str | None:
    """Printable delivery address. Plain text only."""
    for pattern in ADDRESS_PATTERNS:
        m = pattern.search(text)
        if m:
            return _WHITESPACE.sub(" ", m.group(1).strip())
    return None


def extract_fees(text: str, kind: ContentKind = ContentKind.PLAIN_TEXT) -> Fees:
    """Fee breakdown in cents; fees that are not found stay 0."""
    values: dict[str, int] = {}
    for name, pattern in FEE_PATTERNS[kind].items():
        m = pattern.search(text)
        if m:
            values[name] = parse_amount(m.group(1)) or 0
    return Fees(**values)
