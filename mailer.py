"""
Transactional email through the Resend HTTP API.

Both senders return a SendResult and never raise; without an API key
they log a warning and skip.
"""
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from pricing import format_price

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
DEFAULT_FROM_EMAIL = "onboarding@resend.dev"

_TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates", "email")


@dataclass
class SendResult:
    ok: bool
    id: str | None = None
    error: str | None = None


@dataclass
class ConfirmationLine:
    name: str
    quantity: int
    item_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.item_price * self.quantity


@dataclass
class OrderConfirmation:
    location_name: str
    event_date: str
    items: list[ConfirmationLine] = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    estimated_wait_minutes: int | None = None
    pickup_time: str | None = None


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(_TEMPLATE_DIR),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["price"] = format_price
    return env


class ResendMailer:
    def __init__(self, api_key: str | None, from_email: str = DEFAULT_FROM_EMAIL,
                 api_url: str = RESEND_API_URL, timeout: float = 10.0,
                 session: requests.Session | None = None):
        self.api_key = api_key or ""
        self.from_email = from_email or DEFAULT_FROM_EMAIL
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.templates = _environment()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def render(self, template_name: str, **context) -> str:
        return self.templates.get_template(template_name).render(**context).strip()

    def _send(self, to: str, subject: str, html: str) -> SendResult:
        try:
            resp = self.session.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.from_email, "to": [to], "subject": subject, "html": html},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Resend request failed: %s", e)
            return SendResult(ok=False, error=str(e))

        if resp.status_code >= 400:
            try:
                message = resp.json().get("message") or resp.text
            except ValueError:
                message = resp.text
            logger.error("Resend error %s: %s", resp.status_code, message)
            return SendResult(ok=False, error=message or f"HTTP {resp.status_code}")

        try:
            email_id = resp.json().get("id")
        except ValueError:
            email_id = None
        return SendResult(ok=True, id=email_id)

    def send_order_confirmation(self, to: str, data: OrderConfirmation) -> SendResult:
        if not self.configured:
            logger.warning("RESEND_API_KEY not set; skipping order confirmation email")
            return SendResult(ok=False, error="Email not configured")

        html = self.render("order_confirmation.html", data=data)
        return self._send(to, f"Order confirmed: {data.location_name}", html)

    def send_order_ready(self, to: str, location_name: str) -> SendResult:
        if not self.configured:
            logger.warning("RESEND_API_KEY not set; skipping order ready email")
            return SendResult(ok=False, error="Email not configured")

        html = self.render("order_ready.html", location_name=location_name)
        return self._send(to, f"Your order from {location_name} is ready for pickup", html)
