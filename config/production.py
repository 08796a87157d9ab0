import os

from ._common import DEFAULT_SALARY_TEMPLATE, db_config_from_env, smtp_config_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config_from_env()
SMTP_CONFIG = smtp_config_from_env()
FRONTEND_URL = os.getenv("FRONTEND_URL", "")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

PAYROLL_WORKERS = int(os.getenv("PAYROLL_WORKERS", "4"))
