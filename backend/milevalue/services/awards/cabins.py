"""Cabin normalization: maps free-form cabin labels to the four canonical cabins."""

from typing import Any

ECONOMY = "ECONOMY"
PREMIUM = "PREMIUM"
BUSINESS = "BUSINESS"
FIRST = "FIRST"

# Display order
CABINS: tuple[str, ...] = (ECONOMY, PREMIUM, BUSINESS, FIRST)

CABIN_DISPLAY: dict[str, str] = {
    ECONOMY: "Economy",
    PREMIUM: "Premium Economy",
    BUSINESS: "Business",
    FIRST: "First",
}

# Display names used as keys in direct-provider cabinPrices maps
DIRECT_CABIN_NAMES: dict[str, str] = {
    "Economy": ECONOMY,
    "Premium Economy": PREMIUM,
    "Business": BUSINESS,
    "First": FIRST,
}


def normalize_cabin(raw: Any) -> str:
    """Map a cabin label ("Business", "J", "PREMIUM_ECONOMY", "W", ...) to a canonical cabin.

    Word labels match as case-insensitive substrings, single-letter booking
    codes match exactly. Anything else, including empty input, is economy.
    """
    if raw is None:
        return ECONOMY
    label = str(raw).strip().upper()
    if not label:
        return ECONOMY

    if "BUSINESS" in label or label == "J":
        return BUSINESS
    if "FIRST" in label or label == "F":
        return FIRST
    if "PREMIUM" in label or label == "W":
        return PREMIUM
    return ECONOMY


def direct_cabin(display_name: Any) -> str | None:
    """Canonical cabin for a direct-provider display name, or None if the name is not in the table."""
    if not isinstance(display_name, str):
        return None
    return DIRECT_CABIN_NAMES.get(display_name.strip())


def cabin_display(cabin: str) -> str:
    return CABIN_DISPLAY.get(cabin, cabin)
