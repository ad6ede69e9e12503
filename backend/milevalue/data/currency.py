"""Currency utilities: static conversion table, price markers and formatting."""

BASE_CURRENCY = "USD"

# Static exchange rates to USD (approximate, updated by hand)
EXCHANGE_RATES_TO_USD: dict[str, float] = {
    "USD": 1.0,
    "CAD": 0.74,
    "GBP": 1.27,
    "EUR": 1.08,
    "JPY": 0.0067,
    "AUD": 0.65,
    "NZD": 0.60,
    "SGD": 0.75,
    "HKD": 0.13,
    "INR": 0.012,
    "AED": 0.27,
    "QAR": 0.27,
    "TRY": 0.031,
    "KRW": 0.00074,
    "TWD": 0.031,
    "CHF": 1.13,
    "MXN": 0.058,
}

# Symbol prefixes seen in provider price strings. Longest first so "CA$"
# wins over "A$" and "A$" wins over "$".
CURRENCY_SYMBOL_MARKERS: list[tuple[str, str]] = [
    ("CA$", "CAD"),
    ("AU$", "AUD"),
    ("NZ$", "NZD"),
    ("US$", "USD"),
    ("HK$", "HKD"),
    ("NT$", "TWD"),
    ("MX$", "MXN"),
    ("S$", "SGD"),
    ("A$", "AUD"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("¥", "JPY"),
    ("₹", "INR"),
    ("₩", "KRW"),
    ("₺", "TRY"),
    ("$", "USD"),
]

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$", "CAD": "CA$", "GBP": "£", "EUR": "€",
    "JPY": "¥", "AUD": "A$", "NZD": "NZ$", "SGD": "S$", "HKD": "HK$",
    "INR": "₹", "AED": "AED", "QAR": "QAR", "TRY": "₺",
    "KRW": "₩", "TWD": "NT$", "CHF": "CHF", "MXN": "MX$",
}


def conversion_factor(currency: str) -> float:
    """Factor that converts an amount in `currency` to USD. Unknown codes convert 1:1."""
    return EXCHANGE_RATES_TO_USD.get(currency.upper(), 1.0)


def convert_to_usd(amount: float, from_currency: str) -> float:
    """Convert an amount to USD using static exchange rates."""
    return round(amount * conversion_factor(from_currency), 2)


def format_price(amount: float, currency: str = BASE_CURRENCY) -> str:
    """Format a price with currency symbol for display, rounded to whole units."""
    symbol = CURRENCY_SYMBOLS.get(currency, currency + " ")
    return f"{symbol}{round(amount):,}"
