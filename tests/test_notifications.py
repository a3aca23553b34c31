import httpx
import pytest

from app.config import Settings
from app.services import notifications
from app.services.notifications import EmailNotifier


@pytest.fixture
def mailgun(monkeypatch):
    """Routes the module's httpx.Client through a MockTransport and records each request."""
    sent = []
    real_client = httpx.Client

    def handler(request):
        sent.append(request)
        return httpx.Response(200, json={"id": "<1@mg>", "message": "Queued"})

    monkeypatch.setattr(
        notifications.httpx,
        "Client",
        lambda **kw: real_client(transport=httpx.MockTransport(handler), **kw),
    )
    return sent


def test_unconfigured_email_is_not_sent(mailgun):
    notifier = EmailNotifier(Settings(mailgun_api_key="", mailgun_domain="", sendgrid_api_key=""))
    assert notifier.send_confirmation("Ana", "ana@x.com", "tok") is False
    assert mailgun == []


def test_confirmation_link_goes_through_mailgun(mailgun):
    settings = Settings(
        mailgun_api_key="key-123",
        mailgun_domain="mg.example.com",
        app_base_url="https://casas.example.com/",
    )
    assert EmailNotifier(settings).send_confirmation("Ana", "ana@x.com", "tok123") is True

    (request,) = mailgun
    assert str(request.url) == "https://api.mailgun.net/v3/mg.example.com/messages"
    body = request.content.decode()
    assert "https%3A%2F%2Fcasas.example.com%2Fauth%2Fconfirmar%2Ftok123" in body
    assert "noreply%40mg.example.com" in body


def test_reset_link_points_at_reset_page(mailgun):
    settings = Settings(mailgun_api_key="key-123", mailgun_domain="mg.example.com")
    EmailNotifier(settings).send_password_reset("Ana", "ana@x.com", "tok456")
    assert "%2Fauth%2Folvide-password%2Ftok456" in mailgun[0].content.decode()


def test_mailgun_rejection_returns_false(monkeypatch):
    real_client = httpx.Client
    monkeypatch.setattr(
        notifications.httpx,
        "Client",
        lambda **kw: real_client(transport=httpx.MockTransport(lambda r: httpx.Response(400, text="bad")), **kw),
    )
    settings = Settings(mailgun_api_key="key-123", mailgun_domain="mg.example.com")
    assert EmailNotifier(settings).send_confirmation("Ana", "ana@x.com", "tok") is False
