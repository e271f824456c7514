'''
Request-scoped localization.

A Translator is built per request from the `locale` query parameter or the
Accept-Language header and handed to the services through FastAPI's
dependency system. There is no process-wide "current locale".
'''
from typing import Annotated, Optional

from fastapi import Header, Query

from .config import settings
from .logger import log

SUPPORTED_LOCALES = ("en", "ar")

MESSAGES: dict[str, dict] = {
    "en": {
        "auth": {
            "invalid_credentials": "Could not validate credentials",
            "incorrect_login": "Incorrect email or password",
            "inactive_user": "Inactive user.",
            "email_taken": "An account with this email already exists.",
            "no_account": "No account found with this email address.",
            "invalid_reset_token": "This password reset link is invalid or has expired.",
            "passwords_mismatch": "Passwords do not match.",
            "password_too_short": "Password must be at least 8 characters long.",
            "wrong_password": "Current password is incorrect.",
        },
        "errors": {
            "forbidden": "You do not have permission to perform this action.",
            "no_fields": "No fields provided to update.",
            "internal": "An internal server error occurred.",
        },
        "services": {
            "not_found": "Service not found.",
            "inactive": "This service is not currently available.",
            "tutors_only": "Only tutors can manage services.",
        },
        "orders": {
            "not_found": "Order not found.",
            "students_only": "Only students can place orders.",
            "not_pending": "Only pending orders can be paid.",
            "illegal_transition": "This order cannot move from '{current}' to '{target}'.",
            "payment_declined": "Payment was declined: {reason}",
        },
        "reviews": {
            "not_completed": "Only completed orders can be reviewed.",
            "duplicate": "This order has already been reviewed.",
        },
        "messages": {
            "empty": "Message text cannot be empty.",
        },
        "dashboard": {
            "tutor_only": "Only tutors can access the tutor dashboard.",
            "admin_only": "Only admins can access the admin dashboard.",
        },
    },
    "ar": {
        "auth": {
            "invalid_credentials": "تعذر التحقق من بيانات الاعتماد",
            "incorrect_login": "البريد الإلكتروني أو كلمة المرور غير صحيحة",
            "inactive_user": "المستخدم غير نشط.",
            "email_taken": "يوجد حساب بهذا البريد الإلكتروني بالفعل.",
            "no_account": "لا يوجد حساب بهذا البريد الإلكتروني.",
            "invalid_reset_token": "رابط إعادة تعيين كلمة المرور غير صالح أو منتهي الصلاحية.",
            "passwords_mismatch": "كلمتا المرور غير متطابقتين.",
            "password_too_short": "يجب أن تتكون كلمة المرور من 8 أحرف على الأقل.",
            "wrong_password": "كلمة المرور الحالية غير صحيحة.",
        },
        "errors": {
            "forbidden": "ليس لديك إذن لتنفيذ هذا الإجراء.",
            "no_fields": "لم يتم تقديم أي حقول للتحديث.",
            "internal": "حدث خطأ داخلي في الخادم.",
        },
        "services": {
            "not_found": "الخدمة غير موجودة.",
            "inactive": "هذه الخدمة غير متاحة حاليا.",
            "tutors_only": "يمكن للمدرسين فقط إدارة الخدمات.",
        },
        "orders": {
            "not_found": "الطلب غير موجود.",
            "students_only": "يمكن للطلاب فقط تقديم الطلبات.",
            "not_pending": "يمكن دفع الطلبات المعلقة فقط.",
            "illegal_transition": "لا يمكن نقل هذا الطلب من '{current}' إلى '{target}'.",
            "payment_declined": "تم رفض الدفع: {reason}",
        },
        "reviews": {
            "not_completed": "يمكن تقييم الطلبات المكتملة فقط.",
            "duplicate": "تم تقييم هذا الطلب بالفعل.",
        },
        "messages": {
            "empty": "لا يمكن أن يكون نص الرسالة فارغا.",
        },
        "dashboard": {
            "tutor_only": "لوحة المدرس متاحة للمدرسين فقط.",
            "admin_only": "لوحة الإدارة متاحة للمشرفين فقط.",
        },
    },
}


class Translator:
    """
    Resolves dotted message keys ("orders.not_found") for one locale.
    Unknown locales fall back to the default; unknown keys resolve to themselves.
    """
    def __init__(self, locale: Optional[str] = None):
        if locale not in SUPPORTED_LOCALES:
            locale = settings.DEFAULT_LOCALE if settings.DEFAULT_LOCALE in SUPPORTED_LOCALES else "en"
        self.locale = locale

    @property
    def direction(self) -> str:
        return "rtl" if self.locale == "ar" else "ltr"

    def t(self, key: str, **kwargs) -> str:
        current = MESSAGES[self.locale]
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return key
            current = current[part]
        if not isinstance(current, str):
            return key
        return current.format(**kwargs) if kwargs else current


def _locale_from_accept_language(header: Optional[str]) -> Optional[str]:
    """Picks the first supported language tag from an Accept-Language header."""
    if not header:
        return None
    for part in header.split(','):
        tag = part.split(';')[0].strip().lower()
        primary = tag.split('-')[0]
        if primary in SUPPORTED_LOCALES:
            return primary
    return None


def get_translator(
    locale: Annotated[Optional[str], Query()] = None,
    accept_language: Annotated[Optional[str], Header()] = None,
) -> Translator:
    """FastAPI dependency: builds the Translator for the current request."""
    chosen = locale if locale in SUPPORTED_LOCALES else _locale_from_accept_language(accept_language)
    translator = Translator(chosen)
    log.debug(f"Request locale resolved to '{translator.locale}'")
    return translator
