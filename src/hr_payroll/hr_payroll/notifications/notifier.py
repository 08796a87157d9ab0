from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from decimal import Decimal
from email.message import EmailMessage
from email.utils import formataddr, parseaddr
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Outbound employee notifications. Delivery is best-effort."""

    def send_leave_status(
        self,
        *,
        email: str,
        name: str,
        leave_type: str,
        status: str,
        comments: Optional[str] = None,
    ) -> None:
        raise NotImplementedError

    def send_payroll_processed(
        self,
        *,
        email: str,
        name: str,
        month_name: str,
        year: int,
        net_salary: Decimal,
    ) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int = 587
    user: str = ""
    password: str = ""
    use_tls: bool = True
    from_addr: str = "noreply@hr-payroll.local"
    timeout: int = 30

    @classmethod
    def from_dict(cls, smtp_config: dict) -> "SMTPConfig":
        return cls(
            host=str(smtp_config.get("host") or ""),
            port=int(smtp_config.get("port", 587)),
            user=str(smtp_config.get("user") or ""),
            password=str(smtp_config.get("password") or ""),
            use_tls=bool(smtp_config.get("use_tls", True)),
            from_addr=str(smtp_config.get("from_addr") or "noreply@hr-payroll.local"),
        )


def _leave_status_message(*, name, leave_type, status, comments, frontend_url) -> tuple[str, str, str]:
    status_text = "Approved" if status == "approved" else "Rejected"
    subject = f"Leave Request {status_text}"
    lines = [
        f"Hi {name},",
        "",
        f"Your {leave_type} leave request has been {status_text.lower()}.",
    ]
    if comments:
        lines.append(f"Comments: {comments}")
    lines += ["", f"Login to view more details: {frontend_url}/dashboard"]
    text = "\n".join(lines)

    color = "#10B981" if status == "approved" else "#EF4444"
    html = (
        f"<h1>{subject}</h1>"
        f"<p>Hi {name},</p>"
        f"<p>Your <strong>{leave_type}</strong> leave request has been "
        f'<span style="color: {color}; font-weight: bold;">{status_text}</span>.</p>'
        + (f"<p><strong>Comments:</strong> {comments}</p>" if comments else "")
        + f"<p>Login to view more details: {frontend_url}/dashboard</p>"
    )
    return subject, text, html


def _payroll_message(*, name, month_name, year, net_salary, frontend_url) -> tuple[str, str, str]:
    subject = f"Payroll Processed - {month_name} {year}"
    amount = f"{Decimal(net_salary):,.2f}"
    text = "\n".join(
        [
            f"Hi {name},",
            "",
            f"Your payroll for {month_name} {year} has been processed.",
            f"Net Salary: {amount}",
            "",
            f"Login to download your payslip: {frontend_url}/payroll",
        ]
    )
    html = (
        "<h1>Payroll Processed</h1>"
        f"<p>Hi {name},</p>"
        f"<p>Your payroll for <strong>{month_name} {year}</strong> has been processed.</p>"
        f"<p><strong>Net Salary:</strong> {amount}</p>"
        f"<p>Login to download your payslip: {frontend_url}/payroll</p>"
    )
    return subject, text, html


def _from_header(from_addr: str) -> str:
    # Accepts "noreply@x" or "Name <noreply@x>"; a bare address gets the default display name.
    name, addr = parseaddr(from_addr)
    return formataddr((name or "HR Payroll", addr or from_addr))


class SMTPNotifier(Notifier):
    def __init__(self, config: SMTPConfig, *, frontend_url: str = ""):
        self._config = config
        self._frontend_url = frontend_url.rstrip("/")

    def _send(self, *, to: str, subject: str, text: str, html: str) -> None:
        msg = EmailMessage()
        msg["From"] = _from_header(self._config.from_addr)
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        with smtplib.SMTP(self._config.host, self._config.port, timeout=self._config.timeout) as server:
            if self._config.use_tls:
                server.starttls()
            if self._config.user:
                server.login(self._config.user, self._config.password)
            server.send_message(msg)
        logger.info("Sent '%s' to %s", subject, to)

    def send_leave_status(self, *, email, name, leave_type, status, comments=None) -> None:
        subject, text, html = _leave_status_message(
            name=name,
            leave_type=leave_type,
            status=status,
            comments=comments,
            frontend_url=self._frontend_url,
        )
        self._send(to=email, subject=subject, text=text, html=html)

    def send_payroll_processed(self, *, email, name, month_name, year, net_salary) -> None:
        subject, text, html = _payroll_message(
            name=name,
            month_name=month_name,
            year=year,
            net_salary=net_salary,
            frontend_url=self._frontend_url,
        )
        self._send(to=email, subject=subject, text=text, html=html)


class LogNotifier(Notifier):
    """Used when no SMTP host is configured: notifications only go to the log."""

    def send_leave_status(self, *, email, name, leave_type, status, comments=None) -> None:
        logger.info("Leave %s notification for %s (%s leave)", status, email, leave_type)

    def send_payroll_processed(self, *, email, name, month_name, year, net_salary) -> None:
        logger.info("Payroll notification for %s: %s %s net=%s", email, month_name, year, net_salary)


def build_notifier(smtp_config: Optional[dict], *, frontend_url: str = "") -> Notifier:
    config = SMTPConfig.from_dict(smtp_config or {})
    if not config.host:
        return LogNotifier()
    return SMTPNotifier(config, frontend_url=frontend_url)
