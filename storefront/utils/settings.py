# storefront/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

STOREFRONT_API_URL = os.getenv("STOREFRONT_API_URL", "http://localhost:3001/api/v1")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 10))
HTTP_RETRY_ATTEMPTS = int(os.getenv("HTTP_RETRY_ATTEMPTS", 3))
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CACHE_PERSIST_KEY = os.getenv("CACHE_PERSIST_KEY", "storefront:query-cache")
CACHE_MAX_AGE_SECONDS = int(os.getenv("CACHE_MAX_AGE_SECONDS", 24 * 60 * 60))
QUERY_STALE_SECONDS = float(os.getenv("QUERY_STALE_SECONDS", 60 * 60))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
