# shopcart/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


COMMERCE_API_URL = os.getenv("COMMERCE_API_URL", "http://localhost:5000/api")
COMMERCE_API_TOKEN = os.getenv("COMMERCE_API_TOKEN") or None
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 5))
HTTP_RETRY_ATTEMPTS = int(os.getenv("HTTP_RETRY_ATTEMPTS", 3))
# drop the discount from totals once the stored coupon has expired
RECHECK_COUPON_EXPIRY = _env_bool("RECHECK_COUPON_EXPIRY", True)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
