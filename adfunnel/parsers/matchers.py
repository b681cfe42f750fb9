"""ADFUNNEL — Funnel Category Matchers.

The one ordered table that decides which funnel category an action type or
conversion-action name belongs to. Tables are consulted top to bottom and the
first match wins, so a single tag is attributed to at most one category.

Bump ``MATCHER_TABLE_VERSION`` whenever a table changes: cached campaign
records parsed under an older table are not comparable with fresh ones.
"""

from typing import Iterable, Optional, Sequence, Tuple

from adfunnel.core.metric_registry import FunnelCategory

MATCHER_TABLE_VERSION = "1.0.0"


def normalize_tag(tag: object) -> str:
    """Lower-case and trim an action type / conversion name."""
    if tag is None:
        return ""
    return str(tag).strip().lower()


class CategoryMatcher:
    """Predicate mapping a normalized tag to one funnel category.

    A tag matches when it equals one of ``equals`` or contains one of
    ``contains``, and contains none of ``excludes``. ``canonical`` names the
    preferred representative among synonym tags (Meta only).
    """

    def __init__(
        self,
        category: FunnelCategory,
        contains: Iterable[str] = (),
        equals: Iterable[str] = (),
        excludes: Iterable[str] = (),
        canonical: Optional[str] = None,
    ):
        self.category = category
        self.contains = tuple(contains)
        self.equals = frozenset(equals)
        self.excludes = tuple(excludes)
        self.canonical = canonical

    def matches(self, tag: str) -> bool:
        if any(x in tag for x in self.excludes):
            return False
        return tag in self.equals or any(c in tag for c in self.contains)

    def __repr__(self) -> str:
        return f"<CategoryMatcher {self.category.value}>"


# ─────────────────────────────────────────────
# META — Graph API action types
# ─────────────────────────────────────────────

META_MATCHERS: Tuple[CategoryMatcher, ...] = (
    CategoryMatcher(
        FunnelCategory.CLICK_TO_CALL,
        contains=("click_to_call",),
        canonical="click_to_call_call_confirm",
    ),
    CategoryMatcher(
        FunnelCategory.EMAIL_CONTACTS,
        contains=("lead",),
        canonical="lead",
    ),
    CategoryMatcher(
        FunnelCategory.BOOKING_STEP_1,
        contains=("search",),
        equals=("omni_search",),
        canonical="search",
    ),
    CategoryMatcher(
        FunnelCategory.BOOKING_STEP_2,
        contains=("view_content",),
        equals=("omni_view_content",),
        canonical="view_content",
    ),
    CategoryMatcher(
        FunnelCategory.BOOKING_STEP_3,
        contains=("initiate_checkout",),
        equals=("omni_initiated_checkout",),
        canonical="initiate_checkout",
    ),
    CategoryMatcher(
        FunnelCategory.RESERVATIONS,
        contains=("fb_pixel_purchase", "omni_purchase"),
        equals=("purchase",),
        canonical="purchase",
    ),
)


# ─────────────────────────────────────────────
# GOOGLE — Conversion action names (EN / PL labels)
# ─────────────────────────────────────────────

GOOGLE_MATCHERS: Tuple[CategoryMatcher, ...] = (
    CategoryMatcher(
        FunnelCategory.CLICK_TO_CALL,
        contains=("phone", "telefon", "call", "dzwonienie"),
    ),
    CategoryMatcher(
        FunnelCategory.EMAIL_CONTACTS,
        contains=("email", "e-mail", "mail", "contact", "kontakt", "formularz", "lead"),
    ),
    CategoryMatcher(
        FunnelCategory.BOOKING_STEP_1,
        contains=(
            "step 1",
            "step1",
            "krok 1",
            "1 krok",
            "pierwszy krok",
            "pierwszy_krok",
            "booking_step_1",
            "search",
        ),
    ),
    CategoryMatcher(
        FunnelCategory.BOOKING_STEP_2,
        contains=(
            "step 2",
            "step2",
            "krok 2",
            "2 krok",
            "drugi krok",
            "drugi_krok",
            "booking_step_2",
            "view_content",
            "view_item",
        ),
    ),
    CategoryMatcher(
        FunnelCategory.BOOKING_STEP_3,
        contains=(
            "step 3",
            "step3",
            "krok 3",
            "3 krok",
            "trzeci krok",
            "trzeci_krok",
            "booking_step_3",
            "initiate_checkout",
            "begin_checkout",
            "add_to_cart",
        ),
    ),
    # Generic "booking" is not a reservation: it also names booking engine steps.
    CategoryMatcher(
        FunnelCategory.RESERVATIONS,
        contains=("rezerwacja", "reservation", "zakup", "purchase", "complete"),
        excludes=("krok", "step", "booking engine", "booking_step"),
    ),
)


def classify(
    tag: str, matchers: Sequence[CategoryMatcher]
) -> Optional[CategoryMatcher]:
    """Return the first matcher accepting ``tag``, or None for unknown tags."""
    normalized = normalize_tag(tag)
    if not normalized:
        return None
    for matcher in matchers:
        if matcher.matches(normalized):
            return matcher
    return None
