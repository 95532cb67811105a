import os
from dotenv import load_dotenv

load_dotenv(override=True)

BOT_TOKEN = os.getenv("BOT_TOKEN")

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000").rstrip("/")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "15"))


REDIS_DSN = os.getenv("REDIS_DSN", "redis://localhost:6379/0")


NOMINATIM_URL = os.getenv(
    "NOMINATIM_URL", "https://nominatim.openstreetmap.org"
).rstrip("/")
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "storefront-dashboard-bot")
NOMINATIM_TIMEOUT = float(os.getenv("NOMINATIM_TIMEOUT", "10"))


# Опрос заказов на дашборде и "возврат фокуса" в чат
ORDERS_POLL_INTERVAL = int(os.getenv("ORDERS_POLL_INTERVAL", "30"))
FOCUS_IDLE_SECONDS = int(os.getenv("FOCUS_IDLE_SECONDS", "60"))
QUERY_STALE_TIME = float(os.getenv("QUERY_STALE_TIME", "30"))


MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(2 * 1024 * 1024)))


STORE_TIMEZONE = os.getenv("STORE_TIMEZONE", "Asia/Kathmandu")
STORE_OPEN_HOUR = int(os.getenv("STORE_OPEN_HOUR", "9"))
STORE_CLOSE_HOUR = int(os.getenv("STORE_CLOSE_HOUR", "21"))
