"""Field validators and normalizers for account payloads.

Every function here is pure: no I/O, no clock access unless ``today`` is
omitted. Failures raise :class:`~app.domain.errors.ValidationError` with a
message naming the rule that was broken, which the API returns verbatim.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from .contracts import RegistrationInput
from .errors import ValidationError

NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100

CPF_PATTERN = re.compile(r"[0-9]{11}")
EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)
DATE_OF_BIRTH_FORMATS = ("%d/%m/%Y", "%Y-%m-%d")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def capitalize_words(value: str | None) -> str | None:
    """Title-case each whitespace-separated token.

    >>> capitalize_words("joão DA silva")
    'João Da Silva'
    """
    if not value:
        return value
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.split())


def validate_name(value: str | None, label: str = "Name") -> str:
    """Return the normalized name, or raise when blank or too long."""
    if _is_blank(value):
        raise ValidationError(f"{label} is required")
    if len(value) > NAME_MAX_LENGTH:
        raise ValidationError(f"{label} must be at most {NAME_MAX_LENGTH} characters")
    return capitalize_words(value)


def validate_cpf(value: str | None) -> str:
    if _is_blank(value):
        raise ValidationError("CPF is required")
    if not CPF_PATTERN.fullmatch(value):
        raise ValidationError("CPF must contain 11 digits")
    return value


def format_cpf(cpf: str | None) -> str | None:
    """Render a stored CPF as ``###.###.###-##`` for read responses."""
    if cpf is None or len(cpf) != 11:
        return cpf
    return f"{cpf[0:3]}.{cpf[3:6]}.{cpf[6:9]}-{cpf[9:11]}"


def parse_date_of_birth(value: str | date | None) -> date | None:
    """Accept ``dd/mm/yyyy`` or ISO dates as sent by clients."""
    if value is None or isinstance(value, date):
        return value
    text = value.strip()
    for fmt in DATE_OF_BIRTH_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationError("Date of birth must use the format dd/MM/yyyy")


def validate_date_of_birth(value: date | None, today: date | None = None) -> date:
    if value is None:
        raise ValidationError("Date of birth is required")
    today = today or date.today()
    if value >= today:
        raise ValidationError("Date of birth must be in the past")
    return value


def normalize_email(value: str) -> str:
    return value.strip().lower()


def validate_email(value: str | None) -> str:
    """Return the trimmed, lowercased email or raise if it is missing or malformed."""
    if _is_blank(value):
        raise ValidationError("Email is required")
    email = normalize_email(value)
    if not EMAIL_PATTERN.fullmatch(email):
        raise ValidationError("Invalid email format")
    return email


def validate_password(value: str | None) -> str:
    if _is_blank(value):
        raise ValidationError("Password is required")
    if not PASSWORD_MIN_LENGTH <= len(value) <= PASSWORD_MAX_LENGTH:
        raise ValidationError(
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    return value


def validate_optional_password(value: str | None) -> str | None:
    """Password on update: absent or blank means "keep the current one"."""
    if _is_blank(value):
        return None
    return validate_password(value)


def validate_search_term(value: str | None) -> str:
    if _is_blank(value):
        raise ValidationError("Search term is required")
    return value.strip()


def calculate_age(date_of_birth: date, today: date | None = None) -> int:
    """Whole calendar years elapsed since ``date_of_birth``.

    No lower or upper bound is applied to the result.
    """
    today = today or date.today()
    before_birthday = (today.month, today.day) < (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - int(before_birthday)


def validate_registration(
    payload: RegistrationInput, today: date | None = None
) -> RegistrationInput:
    """Validate every registration field and return a normalized copy.

    Fields are checked in declaration order so the first failing rule is
    the one reported.
    """
    return RegistrationInput(
        name=validate_name(payload.name, "Name"),
        last_name=validate_name(payload.last_name, "Last name"),
        cpf=validate_cpf(payload.cpf),
        date_of_birth=validate_date_of_birth(payload.date_of_birth, today),
        email=validate_email(payload.email),
        password=validate_password(payload.password),
    )
