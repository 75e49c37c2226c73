"""
Renewal Email Templates

Bilingual (English + Arabic) renewal confirmations and add-on expiry
warnings, black and white only.
"""

from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Optional, Union

from app.domain.subscription import AddOnType, ExpiryReminder, UserPlan


# (English, Arabic) display names
PLAN_DISPLAY_NAMES: dict[UserPlan, tuple[str, str]] = {
    UserPlan.BUSINESS: ("Business", "الأعمال"),
    UserPlan.AGENCY: ("Partner", "الشريك"),
}

ADDON_DISPLAY_NAMES: dict[AddOnType, tuple[str, str]] = {
    AddOnType.EXTRA_CUSTOM_DOMAIN: ("Domain", "النطاق"),
    AddOnType.EXTRA_WORKSPACE: ("Workspace", "مساحة العمل"),
    AddOnType.EXTRA_SUBDOMAIN: ("Subdomain", "النطاق الفرعي"),
    AddOnType.EXTRA_ADMIN: ("Admin", "مدير"),
    AddOnType.EXTRA_FUNNEL: ("Website", "الموقع"),
    AddOnType.EXTRA_PAGE: ("Page", "الصفحة"),
}

_FALLBACK_ADDON_NAME = ("Addon", "إضافة")


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def plan_display_name(plan: Optional[Union[UserPlan, str]]) -> tuple[str, str]:
    """A missing plan renders as Business; any other tier as Partner."""
    if plan is None or plan in (UserPlan.BUSINESS, UserPlan.BUSINESS.value):
        return PLAN_DISPLAY_NAMES[UserPlan.BUSINESS]
    return PLAN_DISPLAY_NAMES[UserPlan.AGENCY]


def addon_display_name(addon_type: Optional[Union[AddOnType, str]]) -> tuple[str, str]:
    try:
        return ADDON_DISPLAY_NAMES[AddOnType(addon_type)]
    except (KeyError, ValueError):
        return _FALLBACK_ADDON_NAME


def format_billing_date(value: datetime) -> str:
    """DD/MM/YYYY, the format the gateway uses."""
    return value.strftime("%d/%m/%Y")


_HTML_LAYOUT = """<!DOCTYPE html>
<html lang="en" dir="ltr">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; background-color: #ffffff; color: #000000; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 40px auto; padding: 20px; border: 1px solid #000000;">
    <h1 style="font-size: 24px;">{heading_en}</h1>
    <p style="font-size: 16px; line-height: 1.6;">{body_en}</p>
    <div style="margin: 20px 0; padding: 15px; border: 1px solid #000000; background-color: #f9f9f9;">
      <p><strong>Subscription ID:</strong> {subscription_id}</p>
      <p><strong>Next Billing Date:</strong> {next_payment_date}</p>
    </div>
    <p style="font-size: 16px; line-height: 1.6;">Thank you for continuing to use Digitalsite!</p>

    <div dir="rtl" style="margin-top: 40px; text-align: right;">
      <h1 style="font-size: 24px;">{heading_ar}</h1>
      <p style="font-size: 16px; line-height: 1.6;">{body_ar}</p>
      <div style="margin: 20px 0; padding: 15px; border: 1px solid #000000; background-color: #f9f9f9;">
        <p><strong>رقم الاشتراك:</strong> {subscription_id}</p>
        <p><strong>تاريخ الفوترة التالي:</strong> {next_payment_date}</p>
      </div>
      <p style="font-size: 16px; line-height: 1.6;">شكراً لك على استمرارك في استخدام ديجيتال سايت!</p>
    </div>

    <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #000000; font-size: 14px; color: #666666;">
      <p>Best regards,<br>The Digitalsite Team</p>
      <p dir="rtl" style="text-align: right;">مع أطيب التحيات،<br>فريق Digitalsite</p>
    </div>
  </div>
</body>
</html>
"""

_TEXT_LAYOUT = """DIGITALSITE

{heading_en}

{body_en}

Subscription ID: {subscription_id}
Next Billing Date: {next_payment_date}

Thank you for continuing to use Digitalsite!

---

{heading_ar}

{body_ar}

رقم الاشتراك: {subscription_id}
تاريخ الفوترة التالي: {next_payment_date}

شكراً لك على استمرارك في استخدام ديجيتال سايت!

---

The Digitalsite Team
"""


def _render(
    subject: str,
    heading_en: str,
    heading_ar: str,
    body_en: str,
    body_ar: str,
    subscription_id: str,
    next_payment_date: datetime,
) -> RenderedEmail:
    fields = {
        "heading_en": heading_en,
        "heading_ar": heading_ar,
        "subscription_id": subscription_id,
        "next_payment_date": format_billing_date(next_payment_date),
    }
    html = _HTML_LAYOUT.format(
        title=escape(heading_en),
        body_en=body_en,
        body_ar=body_ar,
        **{key: escape(value) for key, value in fields.items()},
    )
    text = _TEXT_LAYOUT.format(
        body_en=_strip_tags(body_en),
        body_ar=_strip_tags(body_ar),
        **fields,
    )
    return RenderedEmail(subject=subject, html=html, text=text)


def _strip_tags(fragment: str) -> str:
    return fragment.replace("<strong>", "").replace("</strong>", "")


def render_plan_renewal(
    plan: Optional[Union[UserPlan, str]],
    subscription_id: str,
    next_payment_date: datetime,
) -> RenderedEmail:
    """Confirmation sent after a plan subscription renews."""
    name_en, name_ar = plan_display_name(plan)
    return _render(
        subject=f"Subscription Renewed - {name_en} Plan | تم تجديد الاشتراك - خطة {name_ar}",
        heading_en="Subscription Renewed Successfully",
        heading_ar="تم تجديد الاشتراك بنجاح",
        body_en=f"Your <strong>{escape(name_en)} Plan</strong> subscription has been successfully renewed.",
        body_ar=f"تم تجديد اشتراكك في <strong>خطة {escape(name_ar)}</strong> بنجاح.",
        subscription_id=subscription_id,
        next_payment_date=next_payment_date,
    )


def render_addon_renewal(
    addon_type: Optional[Union[AddOnType, str]],
    subscription_id: str,
    next_payment_date: datetime,
) -> RenderedEmail:
    """Confirmation sent after an add-on subscription renews."""
    name_en, name_ar = addon_display_name(addon_type)
    return _render(
        subject=f"Addon Renewed - {name_en} | تم تجديد الإضافة - {name_ar}",
        heading_en="Addon Renewed Successfully",
        heading_ar="تم تجديد الإضافة بنجاح",
        body_en=f"Your <strong>{escape(name_en)}</strong> addon has been successfully renewed.",
        body_ar=f"تم تجديد إضافة <strong>{escape(name_ar)}</strong> الخاصة بك بنجاح.",
        subscription_id=subscription_id,
        next_payment_date=next_payment_date,
    )


# =============================================================================
# Add-on Expiry Warnings
# =============================================================================

WARNING_ADDON_NAMES: dict[AddOnType, tuple[str, str]] = {
    AddOnType.EXTRA_WORKSPACE: ("Extra Workspace", "مساحة عمل إضافية"),
    AddOnType.EXTRA_FUNNEL: ("Extra Website", "موقع إضافي"),
    AddOnType.EXTRA_PAGE: ("Extra Page", "صفحة إضافية"),
    AddOnType.EXTRA_SUBDOMAIN: ("Extra Subdomain", "نطاق فرعي إضافي"),
    AddOnType.EXTRA_CUSTOM_DOMAIN: ("Extra Custom Domain", "نطاق مخصص إضافي"),
    AddOnType.EXTRA_ADMIN: ("Extra Admin", "مدير إضافي"),
}

EXPIRY_CONSEQUENCES: dict[AddOnType, tuple[str, str]] = {
    AddOnType.EXTRA_WORKSPACE: (
        "The extra workspace and all its websites will be disabled.",
        "سيتم تعطيل مساحة العمل الإضافية وجميع مواقعها.",
    ),
    AddOnType.EXTRA_FUNNEL: (
        "Excess websites beyond your plan limit will be archived.",
        "سيتم أرشفة المواقع الزائدة عن حد خطتك.",
    ),
    AddOnType.EXTRA_PAGE: (
        "Excess pages beyond your plan limit will have their linking IDs removed.",
        "سيتم إزالة معرفات الربط من الصفحات الزائدة عن حد خطتك.",
    ),
    AddOnType.EXTRA_SUBDOMAIN: (
        "Excess subdomains beyond your plan limit will be deleted.",
        "سيتم حذف النطاقات الفرعية الزائدة عن حد خطتك.",
    ),
    AddOnType.EXTRA_CUSTOM_DOMAIN: (
        "Excess custom domains beyond your plan limit will be deleted.",
        "سيتم حذف النطاقات المخصصة الزائدة عن حد خطتك.",
    ),
    AddOnType.EXTRA_ADMIN: (
        "Excess team members beyond your plan limit will be removed.",
        "سيتم إزالة أعضاء الفريق الزائدين عن حد خطتك.",
    ),
}

_FALLBACK_CONSEQUENCE = (
    "Resources will be adjusted to match your plan limits.",
    "سيتم تعديل الموارد لتتناسب مع حدود خطتك.",
)

# reminder -> (subject, heading_en, heading_ar)
_WARNING_HEADERS: dict[ExpiryReminder, tuple[str, str, str]] = {
    ExpiryReminder.DAY7: (
        "Addon Expiring in 7 Days | تنتهي الإضافة خلال 7 أيام",
        "Addon Expiring Soon",
        "الإضافة على وشك الانتهاء",
    ),
    ExpiryReminder.DAY3: (
        "Urgent: Addon Expiring in 3 Days | عاجل: تنتهي الإضافة خلال 3 أيام",
        "Addon Expiring in 3 Days",
        "تنتهي الإضافة خلال 3 أيام",
    ),
    ExpiryReminder.DAY1: (
        "Final Warning: Addon Expires Tomorrow | تحذير أخير: تنتهي الإضافة غدًا",
        "Final Warning: Addon Expires Tomorrow",
        "تحذير أخير: تنتهي الإضافة غدًا",
    ),
}

_WARNING_HTML_LAYOUT = """<!DOCTYPE html>
<html lang="en" dir="ltr">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="font-family: Arial, sans-serif; background-color: #ffffff; color: #000000; margin: 0; padding: 0;">
  <div style="max-width: 600px; margin: 40px auto; padding: 20px; border: 1px solid #000000;">
    <h1 style="font-size: 24px;">{heading_en}</h1>
    <p style="font-size: 16px; line-height: 1.6;">{body_en}</p>
    <div style="margin: 20px 0; padding: 15px; border: 1px solid #000000; background-color: #f9f9f9;">
      <p><strong>What will happen:</strong> {consequence_en}</p>
    </div>
    <p style="font-size: 16px; line-height: 1.6;">To continue using this addon, please contact support or renew before {expiration_date}.</p>
    <p><a href="{renewal_url}" style="color: #000000;">Manage add-ons</a></p>

    <div dir="rtl" style="margin-top: 40px; text-align: right;">
      <h1 style="font-size: 24px;">{heading_ar}</h1>
      <p style="font-size: 16px; line-height: 1.6;">{body_ar}</p>
      <div style="margin: 20px 0; padding: 15px; border: 1px solid #000000; background-color: #f9f9f9;">
        <p><strong>ماذا سيحدث:</strong> {consequence_ar}</p>
      </div>
      <p style="font-size: 16px; line-height: 1.6;">لمواصلة استخدام هذه الإضافة، يرجى التواصل مع الدعم أو التجديد قبل {expiration_date}.</p>
      <p><a href="{renewal_url}" style="color: #000000;">إدارة الإضافات</a></p>
    </div>

    <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #000000; font-size: 14px; color: #666666;">
      <p>Best regards,<br>The Digitalsite Team</p>
      <p dir="rtl" style="text-align: right;">مع أطيب التحيات،<br>فريق Digitalsite</p>
    </div>
  </div>
</body>
</html>
"""

_WARNING_TEXT_LAYOUT = """DIGITALSITE

{heading_en}

{body_en}

What will happen: {consequence_en}

To continue using this addon, please contact support or renew before {expiration_date}.
{renewal_url}

---

{heading_ar}

{body_ar}

ماذا سيحدث: {consequence_ar}

لمواصلة استخدام هذه الإضافة، يرجى التواصل مع الدعم أو التجديد قبل {expiration_date}.
{renewal_url}

---

The Digitalsite Team
"""


def _warning_bodies(reminder: ExpiryReminder, name_en: str, name_ar: str, date: str) -> tuple[str, str]:
    if reminder is ExpiryReminder.DAY7:
        return (
            f"Your <strong>{name_en}</strong> addon will expire in 7 days on <strong>{date}</strong>.",
            f"ستنتهي إضافة <strong>{name_ar}</strong> الخاصة بك خلال 7 أيام في <strong>{date}</strong>.",
        )
    if reminder is ExpiryReminder.DAY3:
        return (
            f"Your <strong>{name_en}</strong> addon will expire in 3 days on <strong>{date}</strong>. "
            "This is your second reminder.",
            f"ستنتهي إضافة <strong>{name_ar}</strong> الخاصة بك خلال 3 أيام في <strong>{date}</strong>. "
            "هذا هو تذكيرك الثاني.",
        )
    return (
        f"Final reminder: Your <strong>{name_en}</strong> addon expires tomorrow on <strong>{date}</strong>.",
        f"تذكير أخير: تنتهي إضافة <strong>{name_ar}</strong> الخاصة بك غدًا في <strong>{date}</strong>.",
    )


def render_addon_expiry_warning(
    reminder: ExpiryReminder,
    addon_type: Optional[Union[AddOnType, str]],
    quantity: int,
    expiration_date: datetime,
    renewal_url: str,
) -> RenderedEmail:
    """
    Warning sent while an add-on is in its grace period.

    The quantity is shown only when more than one unit is about to lapse.
    """
    try:
        key = AddOnType(addon_type)
    except ValueError:
        key = None
    name_en, name_ar = WARNING_ADDON_NAMES.get(key, _FALLBACK_ADDON_NAME)
    if quantity > 1:
        name_en, name_ar = f"{name_en} ({quantity})", f"{name_ar} ({quantity})"
    consequence_en, consequence_ar = EXPIRY_CONSEQUENCES.get(key, _FALLBACK_CONSEQUENCE)

    subject, heading_en, heading_ar = _WARNING_HEADERS[reminder]
    date = format_billing_date(expiration_date)
    body_en, body_ar = _warning_bodies(reminder, escape(name_en), escape(name_ar), date)

    fields = {
        "heading_en": heading_en,
        "heading_ar": heading_ar,
        "consequence_en": consequence_en,
        "consequence_ar": consequence_ar,
        "expiration_date": date,
        "renewal_url": renewal_url,
    }
    html = _WARNING_HTML_LAYOUT.format(
        title=escape(heading_en),
        body_en=body_en,
        body_ar=body_ar,
        **{k: escape(v) for k, v in fields.items()},
    )
    text = _WARNING_TEXT_LAYOUT.format(
        body_en=_strip_tags(body_en),
        body_ar=_strip_tags(body_ar),
        **fields,
    )
    return RenderedEmail(subject=subject, html=html, text=text)
