"""
Notifications Infrastructure Module

SendGrid email delivery plus bilingual renewal and expiry warning templates.
"""

from app.infrastructure.notifications.email_service import (
    EmailMessage,
    EmailService,
    get_email_service,
)
from app.infrastructure.notifications.templates import (
    RenderedEmail,
    render_addon_expiry_warning,
    render_addon_renewal,
    render_plan_renewal,
)

__all__ = [
    "EmailMessage",
    "EmailService",
    "get_email_service",
    "RenderedEmail",
    "render_addon_expiry_warning",
    "render_addon_renewal",
    "render_plan_renewal",
]
