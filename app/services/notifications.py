"""
Envio de e-mails do fluxo de credenciais (reset de senha, senha temporária).

Sem SMTP configurado, as mensagens só vão para o log (sem segredos).
"""
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from app.core.config import Settings, settings, smtp_configured

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send_password_reset(self, email: str, name: str, token: str) -> None: ...

    def send_temporary_password(self, email: str, name: str, password: str) -> None: ...


def reset_link(cfg: Settings, token: str) -> str:
    base = (cfg.FRONTEND_URL or "").rstrip("/")
    return f"{base}/reset-password?token={token}"


class LogNotifier:
    """Simula o envio no log. Usado em dev e quando o SMTP não está configurado."""

    def send_password_reset(self, email: str, name: str, token: str) -> None:
        logger.info("[simulado] e-mail de redefinição de senha para %s", email)

    def send_temporary_password(self, email: str, name: str, password: str) -> None:
        logger.info("[simulado] e-mail de senha temporária para %s", email)


class SmtpNotifier:
    def __init__(self, cfg: Settings = settings):
        self.cfg = cfg
        self.from_email = cfg.MAIL_FROM or cfg.SMTP_USER
        self.from_name = cfg.MAIL_FROM_NAME or cfg.APP_NAME

    def _send(self, to_email: str, subject: str, text_body: str, html_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        with smtplib.SMTP(self.cfg.SMTP_HOST, self.cfg.SMTP_PORT, timeout=10) as server:
            if self.cfg.SMTP_USE_TLS:
                server.starttls()
            if self.cfg.SMTP_USER and self.cfg.SMTP_PASSWORD:
                server.login(self.cfg.SMTP_USER, self.cfg.SMTP_PASSWORD)
            server.sendmail(self.from_email, [to_email], msg.as_string())

        logger.info("E-mail '%s' enviado para %s", subject, to_email)

    def send_password_reset(self, email: str, name: str, token: str) -> None:
        link = reset_link(self.cfg, token)
        minutes = self.cfg.RESET_TOKEN_EXPIRE_MINUTES
        subject = f"Redefinição de senha - {self.from_name}"
        text_body = (
            f"Olá, {name or email}!\n\n"
            f"Para redefinir sua senha, acesse: {link}\n"
            f"O link expira em {minutes} minutos.\n\n"
            "Se você não solicitou, ignore este e-mail."
        )
        html_body = (
            f"<p>Olá, {html.escape(name or email)}!</p>"
            f'<p>Para redefinir sua senha, clique <a href="{link}">aqui</a>.</p>'
            f"<p><strong>O link expira em {minutes} minutos.</strong></p>"
            "<p>Se você não solicitou, ignore este e-mail.</p>"
        )
        self._send(email, subject, text_body, html_body)

    def send_temporary_password(self, email: str, name: str, password: str) -> None:
        subject = f"Sua senha temporária - {self.from_name}"
        text_body = (
            f"Olá, {name or email}!\n\n"
            f"Sua senha temporária é: {password}\n"
            "No primeiro acesso você deverá criar uma nova senha."
        )
        html_body = (
            f"<p>Olá, {html.escape(name or email)}!</p>"
            f"<p>Sua senha temporária é: <strong>{password}</strong></p>"
            "<p>No primeiro acesso você deverá criar uma nova senha.</p>"
        )
        self._send(email, subject, text_body, html_body)


def build_notifier(cfg: Settings = settings) -> Notifier:
    if smtp_configured(cfg):
        return SmtpNotifier(cfg)
    logger.warning("SMTP não configurado. E-mails serão simulados no log.")
    return LogNotifier()
