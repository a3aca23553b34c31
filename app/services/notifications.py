"""Outbound email: account confirmation and password reset links (Mailgun/SendGrid)."""
import httpx

from app.config import Settings, get_settings


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None, settings: Settings | None = None) -> bool:
    """Send email via Mailgun (preferred) or SendGrid. Returns False when unconfigured or the provider refused."""
    settings = settings or get_settings()
    has_key = bool(settings.mailgun_api_key)
    has_domain = bool(settings.mailgun_domain)
    if has_key and has_domain:
        print(f"[Email] Calling Mailgun API: to={to_email} subject={subject} domain={settings.mailgun_domain}", flush=True)
        return _send_email_mailgun(to_email, subject, html_content, text_content=text_content, settings=settings)
    if settings.sendgrid_api_key:
        return _send_email_sendgrid(to_email, subject, html_content, text_content=text_content, settings=settings)
    print(
        f"[Email] NOT SENT: to={to_email} subject={subject}. MAILGUN_API_KEY={'set' if has_key else 'MISSING'} MAILGUN_DOMAIN={'set' if has_domain else 'MISSING'}.",
        flush=True,
    )
    return False


MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"


def _send_email_mailgun(to_email: str, subject: str, html_content: str, text_content: str | None, settings: Settings) -> bool:
    base = (settings.mailgun_base_url or MAILGUN_US_BASE).strip().rstrip("/")
    domain = (settings.mailgun_domain or "").strip().lower()
    from_addr = (settings.mailgun_from_email or "").strip()
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if domain and from_domain != domain:
        from_addr = f"noreply@{domain}"
    data = {
        "from": f"{settings.mailgun_from_name} <{from_addr}>",
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
            if 200 <= r.status_code < 300:
                print(f"[Mailgun] API success: to={to_email} status={r.status_code}", flush=True)
                return True
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                print("[Mailgun] 401 with US endpoint. Retrying with EU endpoint...", flush=True)
                r2 = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
                if 200 <= r2.status_code < 300:
                    return True
                print(f"[Mailgun] EU request failed: status={r2.status_code} body={r2.text[:500]}", flush=True)
                return False
            print(f"[Mailgun] API failed: status={r.status_code} to={to_email} body={r.text[:500]}", flush=True)
            return False
    except httpx.HTTPError as e:
        print(f"[Mailgun] Exception: to={to_email} error={type(e).__name__}: {e}", flush=True)
        return False


def _send_email_sendgrid(to_email: str, subject: str, html_content: str, text_content: str | None, settings: Settings) -> bool:
    from sendgrid import SendGridAPIClient
    from sendgrid.helpers.mail import Mail

    message = Mail(
        from_email=(settings.sendgrid_from_email, settings.sendgrid_from_name),
        to_emails=to_email,
        subject=subject,
        html_content=html_content,
        plain_text_content=text_content or "",
    )
    try:
        SendGridAPIClient(settings.sendgrid_api_key).send(message)
    except Exception as e:  # SDK raises python_http_client errors of several types
        print(f"[SendGrid] Exception: to={to_email} error={type(e).__name__}: {e}", flush=True)
        return False
    return True


class EmailNotifier:
    """Notifier used by the account flows. Tests swap it for a recorder."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.base_url = settings.app_base_url.rstrip("/")

    def send_confirmation(self, name: str, email: str, token: str) -> bool:
        link = f"{self.base_url}/auth/confirmar/{token}"
        subject = f"[{self.settings.app_name}] Confirm your account"
        text = f"Hi {name}, your account is ready. Confirm it by visiting: {link}"
        html = f"""
    <p>Hi {name},</p>
    <p>Your account at {self.settings.app_name} is ready, you only need to confirm it with the following link:
    <a href="{link}">Confirm account</a></p>
    <p>If you did not create this account, you can ignore this email.</p>
    """
        return send_email(email, subject, html, text_content=text, settings=self.settings)

    def send_password_reset(self, name: str, email: str, token: str) -> bool:
        link = f"{self.base_url}/auth/olvide-password/{token}"
        subject = f"[{self.settings.app_name}] Reset your password"
        text = f"Hi {name}, you asked to reset your password. Follow this link to choose a new one: {link}"
        html = f"""
    <p>Hi {name},</p>
    <p>You asked to reset your password at {self.settings.app_name}. Follow this link to choose a new one:
    <a href="{link}">Reset password</a></p>
    <p>If you did not ask for this change, you can ignore this email.</p>
    """
        return send_email(email, subject, html, text_content=text, settings=self.settings)
