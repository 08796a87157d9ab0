import os

from ._common import DEFAULT_SALARY_TEMPLATE, db_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env()
SMTP_CONFIG = {"host": ""}
FRONTEND_URL = "http://localhost:3000"

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

PAYROLL_WORKERS = 1
