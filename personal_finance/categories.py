"""
Category Registry

Static display metadata for the common categories. Lookups are
case-insensitive; anything unknown is shown with the "Others" style, and
income is always shown with the income style whatever its category says.
"""

from typing import Union

from pydantic import BaseModel, ConfigDict

from personal_finance.models.record import INCOME_CATEGORY, RecordKind


class CategoryStyle(BaseModel):
    """Icon plus the two style classes used to render a category."""
    model_config = ConfigDict(frozen=True)

    name: str
    icon: str
    text_color: str
    badge_color: str


OTHERS_CATEGORY = "Others"

COMMON_CATEGORIES: tuple[CategoryStyle, ...] = (
    CategoryStyle(
        name=INCOME_CATEGORY,
        icon="💰",
        text_color="text-emerald-700",
        badge_color="border-emerald-200/60 bg-emerald-50 text-emerald-700",
    ),
    CategoryStyle(
        name="Food & Dining",
        icon="🍽️",
        text_color="text-orange-700",
        badge_color="border-orange-200/60 bg-orange-50 text-orange-700",
    ),
    CategoryStyle(
        name="Clothing",
        icon="👕",
        text_color="text-amber-700",
        badge_color="border-amber-200/60 bg-amber-50 text-amber-700",
    ),
    CategoryStyle(
        name="Groceries",
        icon="🛒",
        text_color="text-sky-700",
        badge_color="border-sky-200/60 bg-sky-50 text-sky-700",
    ),
    CategoryStyle(
        name="Transport",
        icon="🚗",
        text_color="text-indigo-700",
        badge_color="border-indigo-200/60 bg-indigo-50 text-indigo-700",
    ),
    CategoryStyle(
        name="Entertainment",
        icon="🎵",
        text_color="text-violet-700",
        badge_color="border-violet-200/60 bg-violet-50 text-violet-700",
    ),
    CategoryStyle(
        name="Bills & Utilities",
        icon="💳",
        text_color="text-rose-700",
        badge_color="border-rose-200/60 bg-rose-50 text-rose-700",
    ),
    CategoryStyle(
        name=OTHERS_CATEGORY,
        icon="🗄️",
        text_color="text-slate-700",
        badge_color="border-slate-200/60 bg-slate-50 text-slate-700",
    ),
)

_BY_NAME = {style.name.lower(): style for style in COMMON_CATEGORIES}

INCOME_STYLE = _BY_NAME[INCOME_CATEGORY.lower()]
OTHERS_STYLE = _BY_NAME[OTHERS_CATEGORY.lower()]


def get_all_category_names() -> list[str]:
    return [style.name for style in COMMON_CATEGORIES]


def get_category_style(name: str, kind: Union[RecordKind, str]) -> CategoryStyle:
    """Resolve the display style for a category of the given kind."""
    if RecordKind(kind) == RecordKind.INCOME:
        return INCOME_STYLE
    return _BY_NAME.get((name or "").strip().lower(), OTHERS_STYLE)


def merge_category_names(*groups) -> list[str]:
    """
    Union of category names, keeping first-seen order.

    Blank names are skipped; matching is exact, so "food" and "Food"
    both survive.
    """
    seen: dict[str, None] = {}
    for group in groups:
        for name in group:
            if name and name not in seen:
                seen[name] = None
    return list(seen)
