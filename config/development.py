import os

from ._common import DEFAULT_SALARY_TEMPLATE, db_config_from_env, smtp_config_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config_from_env()
SMTP_CONFIG = smtp_config_from_env()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

PAYROLL_WORKERS = int(os.getenv("PAYROLL_WORKERS", "2"))
