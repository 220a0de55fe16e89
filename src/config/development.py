import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "volunteer_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

# Log outbound notifications instead of dropping them
NOTIFICATIONS_ENABLED = bool(int(os.getenv("NOTIFICATIONS_ENABLED", "1")))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
