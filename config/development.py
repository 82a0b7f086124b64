import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "class_attendance"),
}

# "mysql" or "memory" (in-process store, data is lost on restart)
STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

SESSION_WINDOW_MINUTES = int(os.getenv("SESSION_WINDOW_MINUTES", "15"))
LATE_THRESHOLD_MINUTES = int(os.getenv("LATE_THRESHOLD_MINUTES", "15"))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also insert a demo class with three enrolled students
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
