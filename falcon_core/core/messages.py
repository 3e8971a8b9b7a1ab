"""User-facing portal messages in English and Arabic.

The portal sends a ``language`` field with magic-link requests; responses
and validation messages follow it. Unknown languages fall back to English.
"""

from typing import Literal

Language = Literal["en", "ar"]

DEFAULT_LANGUAGE: Language = "en"

_MESSAGES: dict[str, dict[Language, str]] = {
    "email_required": {
        "en": "Email is required",
        "ar": "البريد الإلكتروني مطلوب",
    },
    "link_sent": {
        "en": "Access link sent to your email. Please check your inbox.",
        "ar": "تم إرسال رابط الدخول إلى بريدك الإلكتروني. يرجى التحقق من البريد الوارد.",
    },
    "link_email_subject": {
        "en": "Your Falcon Core Portal Access Link",
        "ar": "رابط الدخول لبوابة فالكون كور",
    },
    "link_greeting": {
        "en": "Hello,",
        "ar": "مرحباً،",
    },
    "link_instruction": {
        "en": "Click the link below to access your portal:",
        "ar": "اضغط على الرابط التالي للدخول:",
    },
    "link_validity": {
        "en": "Valid for {minutes} minutes",
        "ar": "صالح لمدة {minutes} دقيقة",
    },
}


def get_message(key: str, language: str | None = None, **params: object) -> str:
    """Look up a portal message.

    Args:
        key: Message key (e.g., "email_required").
        language: "en" or "ar". Anything else uses English.
        **params: Values substituted into the message template.

    Returns:
        The localized message text.

    Raises:
        KeyError: If the message key is unknown.
    """
    translations = _MESSAGES[key]
    template = translations.get(language, translations[DEFAULT_LANGUAGE])  # type: ignore[call-overload]
    return template.format(**params) if params else template
