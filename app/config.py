import os
from dotenv import load_dotenv

load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URI = os.getenv("DATABASE_URI")
CLIENT_URL = os.getenv("CLIENT_URL") or "*"

DB_POOL_MIN = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX = int(os.getenv("DB_POOL_MAX", "10"))
DB_CONNECT_TIMEOUT = int(os.getenv("DB_CONNECT_TIMEOUT", "10"))
DB_POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", "30"))
AUTO_CREATE_SCHEMA = _get_bool("AUTO_CREATE_SCHEMA", True)

PUBLIC_DIR = os.getenv("PUBLIC_DIR", "public")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
