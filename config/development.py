import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_portal"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# "Remember me" sessions last this many days
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(2 * 1024 * 1024)))

DEVICE_ONLINE_MINUTES = int(os.getenv("DEVICE_ONLINE_MINUTES", "5"))
INACTIVE_DEVICE_RETENTION_DAYS = int(os.getenv("INACTIVE_DEVICE_RETENTION_DAYS", "30"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
