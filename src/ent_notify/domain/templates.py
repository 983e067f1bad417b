"""Transactional email templates.

`render(template, context, base_url)` → (subject, html). Every context value
is HTML-escaped before interpolation.

Context keys per template:
  SUBSCRIPTION_WELCOME: plan_name, price, credits, interval
  CREDIT_PURCHASE:      package_name, price, credits, new_balance
  REFERRAL_REWARD:      credits, new_balance
"""

from html import escape
from typing import Any

from src.ent_common.enums import BillingInterval, EmailTemplate

_LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Timeless</title></head>
<body style="margin:0;padding:40px 16px;background:#09090b;font-family:-apple-system,'Segoe UI',Roboto,Arial,sans-serif;color:#a1a1aa;">
  <div style="max-width:520px;margin:0 auto;background:#18181b;border-radius:24px;padding:32px;">
    <p style="margin:0 0 24px;font-size:26px;font-weight:700;color:#ffffff;text-align:center;">Timeless</p>
    {content}
    <p style="margin:32px 0 0;text-align:center;">
      <a href="{base_url}/create" style="padding:14px 32px;background:#8b5cf6;color:#ffffff;text-decoration:none;border-radius:12px;font-weight:600;">Start Creating</a>
    </p>
    <p style="margin:24px 0 0;font-size:11px;text-align:center;color:#52525b;">Timeless AI</p>
  </div>
</body>
</html>
"""


def _credits(value: Any) -> str:
    return f"{int(value):,}"


def _subscription_welcome(ctx: dict[str, Any]) -> tuple[str, str]:
    plan_name = escape(str(ctx["plan_name"]))
    renewal = "annually" if ctx.get("interval") == BillingInterval.YEAR.value else "monthly"
    subject = f"Welcome to {ctx['plan_name']}! Your subscription is active"
    content = f"""
    <h1 style="color:#ffffff;text-align:center;">Welcome to {plan_name}!</h1>
    <p>Your subscription is now active. Thank you for choosing Timeless!</p>
    <p>Credits added: <strong style="color:#a78bfa;">+{_credits(ctx["credits"])}</strong></p>
    <p>Billing: <strong style="color:#ffffff;">{escape(str(ctx["price"]))}</strong></p>
    <p>Credits renew {renewal}.</p>
    """
    return subject, content


def _credit_purchase(ctx: dict[str, Any]) -> tuple[str, str]:
    subject = f"{_credits(ctx['credits'])} credits added to your account!"
    price = escape(str(ctx.get("price") or ""))
    price_line = f"<p>Amount paid: <strong style=\"color:#ffffff;\">{price}</strong></p>" if price else ""
    content = f"""
    <h1 style="color:#ffffff;text-align:center;">Credits Added!</h1>
    <p>Package purchased: <strong style="color:#ffffff;">{escape(str(ctx["package_name"]))} Pack</strong></p>
    <p>Credits added: <strong style="color:#a78bfa;">+{_credits(ctx["credits"])}</strong></p>
    {price_line}
    <p>Your new balance: <strong style="color:#22c55e;">{_credits(ctx["new_balance"])} credits</strong></p>
    """
    return subject, content


def _referral_reward(ctx: dict[str, Any]) -> tuple[str, str]:
    subject = f"You earned {_credits(ctx['credits'])} referral credits!"
    content = f"""
    <h1 style="color:#ffffff;text-align:center;">Your referral subscribed!</h1>
    <p>A friend you invited just subscribed, so we added
       <strong style="color:#22c55e;">+{_credits(ctx["credits"])}</strong> credits to your account.</p>
    <p>Your new balance: <strong style="color:#ffffff;">{_credits(ctx["new_balance"])} credits</strong></p>
    """
    return subject, content


_RENDERERS = {
    EmailTemplate.SUBSCRIPTION_WELCOME: _subscription_welcome,
    EmailTemplate.CREDIT_PURCHASE: _credit_purchase,
    EmailTemplate.REFERRAL_REWARD: _referral_reward,
}


def render(template: EmailTemplate, context: dict[str, Any], base_url: str) -> tuple[str, str]:
    """Raises KeyError when a required context key is missing."""
    subject, content = _RENDERERS[template](context)
    html = _LAYOUT.format(content=content, base_url=escape(base_url.rstrip("/")))
    return subject, html
