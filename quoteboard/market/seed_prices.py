"""Seed prices and per-symbol parameters for the quote simulator.

Keys are bare tickers; market suffixes such as ".US" or ".HK" are stripped
before lookup, so "AAPL.US" seeds from "AAPL".
"""

# Starting prices, which also serve as the simulated session open
SEED_PRICES: dict[str, float] = {
    "AAPL": 190.00,
    "GOOGL": 175.00,
    "MSFT": 420.00,
    "AMZN": 185.00,
    "TSLA": 250.00,
    "NVDA": 800.00,
    "META": 500.00,
    "JPM": 195.00,
    "V": 280.00,
    "NFLX": 600.00,
    "700": 380.00,
    "9988": 85.00,
    "3690": 120.00,
}

# Per-symbol GBM parameters
# sigma: annualized volatility, mu: annualized drift
SYMBOL_PARAMS: dict[str, dict[str, float]] = {
    "AAPL": {"sigma": 0.22, "mu": 0.05},
    "GOOGL": {"sigma": 0.25, "mu": 0.05},
    "MSFT": {"sigma": 0.20, "mu": 0.05},
    "AMZN": {"sigma": 0.28, "mu": 0.05},
    "TSLA": {"sigma": 0.50, "mu": 0.03},
    "NVDA": {"sigma": 0.40, "mu": 0.08},
    "META": {"sigma": 0.30, "mu": 0.05},
    "JPM": {"sigma": 0.18, "mu": 0.04},
    "V": {"sigma": 0.17, "mu": 0.04},
    "NFLX": {"sigma": 0.35, "mu": 0.05},
    "700": {"sigma": 0.30, "mu": 0.04},
    "9988": {"sigma": 0.38, "mu": 0.03},
    "3690": {"sigma": 0.45, "mu": 0.03},
}

# Parameters for symbols not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.25, "mu": 0.05}

# Symbols in the same group move together more than across groups
CORRELATION_GROUPS: dict[str, set[str]] = {
    "tech": {"AAPL", "GOOGL", "MSFT", "AMZN", "META", "NVDA", "NFLX"},
    "finance": {"JPM", "V"},
    "hk_internet": {"700", "9988", "3690"},
}

INTRA_TECH_CORR = 0.6
INTRA_FINANCE_CORR = 0.5
INTRA_HK_INTERNET_CORR = 0.55
CROSS_GROUP_CORR = 0.3
TSLA_CORR = 0.3  # TSLA does its own thing


def base_symbol(symbol: str) -> str:
    """Strip a market suffix: "700.HK" -> "700"."""
    return symbol.split(".", 1)[0].upper()
