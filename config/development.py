import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "villa_staff"),
}

# "mysql" uses the remote store with the JSON cache as fallback; "local" is JSON only.
STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")
LOCAL_STORE_DIR = os.getenv("LOCAL_STORE_DIR", "instance/store")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo users and point rules on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
