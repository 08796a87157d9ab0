import os


def db_config_from_env(*, default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "hr_payroll"),
    }


def smtp_config_from_env() -> dict:
    # Empty host disables email; notifications are logged instead.
    return {
        "host": os.getenv("SMTP_HOST", ""),
        "port": int(os.getenv("SMTP_PORT", "587")),
        "user": os.getenv("SMTP_USER", ""),
        "password": os.getenv("SMTP_PASSWORD", ""),
        "use_tls": bool(int(os.getenv("SMTP_USE_TLS", "1"))),
        "from_addr": os.getenv("SMTP_FROM", "HR System <noreply@hrpayroll.local>"),
    }


# Used by bulk generation when an employee has no salary structure row.
DEFAULT_SALARY_TEMPLATE = {
    "basic_salary": 50000,
    "allowances": [
        {"type": "HRA", "amount": 15000},
        {"type": "Transport", "amount": 3000},
    ],
    "deductions": [
        {"type": "PF", "amount": 5000},
    ],
    "tax_deduction": 8000,
}
