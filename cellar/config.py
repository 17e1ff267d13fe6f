import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

def _env_bool(name: str, default: bool=False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1","true","t","yes","y","on")

def _env_float(name: str, default: float | None=None) -> float | None:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return float(v)
    except ValueError:
        return default

DEBUG = _env_bool("DEBUG", False)

# Marketplaces reject requests without a desktop browser UA
USER_AGENT = os.getenv("USER_AGENT") or (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

VIVINO_SEARCH_URL = os.getenv("VIVINO_SEARCH_URL", "https://www.vivino.com/search/wines?q=")

# None means no timeout at this layer; the gateway bounds the request
SCRAPE_TIMEOUT = _env_float("SCRAPE_TIMEOUT", None)

GOOGLE_AI_API_KEY = os.getenv("GOOGLE_AI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

DEFAULT_CURRENCY = "EUR"
MAX_PLAUSIBLE_PRICE = 10000.0

def is_price_valid(x) -> bool:
    try:
        return x is not None and 0 < float(x) < MAX_PLAUSIBLE_PRICE
    except (TypeError, ValueError):
        return False
