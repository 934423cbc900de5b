"""SMS delivery for one-time login codes (Twilio)."""

from __future__ import annotations

import requests
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from blog_platform.config import Config
from blog_platform.errors import DeliveryError


def _debug(msg: str) -> None:
    print(f"[sms] {msg}")


def _mask(mobile: str) -> str:
    return f"***{mobile[-4:]}" if len(mobile) > 4 else "***"


def _get_client(cfg: Config) -> Client:
    if not cfg.TWILIO_ACCOUNT_SID or not cfg.TWILIO_AUTH_TOKEN or not cfg.TWILIO_FROM_NUMBER:
        raise DeliveryError("sms_not_configured")
    return Client(cfg.TWILIO_ACCOUNT_SID, cfg.TWILIO_AUTH_TOKEN)


def send_sms(cfg: Config, *, to: str, body: str) -> None:
    """Send one message. Raises DeliveryError; no retry."""
    if cfg.SMS_DEV_CONSOLE and not cfg.is_production:
        _debug(f"(console) to={to} body={body!r}")
        return

    client = _get_client(cfg)
    try:
        message = client.messages.create(body=body, from_=cfg.TWILIO_FROM_NUMBER, to=to)
    except (TwilioException, requests.RequestException) as e:
        _debug(f"send failed to {_mask(to)}: {e}")
        raise DeliveryError(f"sms_delivery_failed: {e}") from e
    _debug(f"sent to {_mask(to)} sid={message.sid}")
