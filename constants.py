import os

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def normalize_log_level(value, default: str = "INFO") -> str:
    """Upper-case level name known to both logging and uvicorn, else the default."""
    level = str(value or "").strip().upper()
    if level == "WARN":
        level = "WARNING"
    return level if level in LOG_LEVELS else default


HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))

LOG_LEVEL = normalize_log_level(os.getenv("LOG_LEVEL", "INFO"))
LOG_FILE = os.getenv("LOG_FILE", None)

# Outbound frames buffered per connection before new ones are dropped
OUTBOUND_QUEUE_SIZE = int(os.getenv("OUTBOUND_QUEUE_SIZE", 64))

RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")
