import re

from app.core.security import password_too_long

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_CNPJ_MASK_RE = re.compile(r"^\d{2}\.\d{3}\.\d{3}/\d{4}-\d{2}$")


def only_digits(s: str) -> str:
    return re.sub(r"\D+", "", s or "")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    email = normalize_email(email)
    return len(email) <= 200 and bool(_EMAIL_RE.match(email))


def normalize_name(s: str) -> str:
    """Normaliza nome (mantém maiúsculas/minúsculas mais amigável)."""
    return re.sub(r"\s+", " ", (s or "").strip())


def _cnpj_digit(base: str) -> str:
    weights = list(range(len(base) - 7, 1, -1)) + list(range(9, 1, -1))
    total = sum(int(d) * w for d, w in zip(base, weights))
    r = total % 11
    return "0" if r < 2 else str(11 - r)


def validate_cnpj(cnpj: str, verify_check_digits: bool = False) -> bool:
    """
    Aceita "00.000.000/0000-00" ou só os 14 dígitos.
    Dígitos verificadores só são conferidos se ``verify_check_digits``.
    """
    raw = (cnpj or "").strip()
    if not raw.isdigit() and not _CNPJ_MASK_RE.match(raw):
        return False

    digits = only_digits(raw)
    if len(digits) != 14 or digits == digits[0] * 14:
        return False

    if verify_check_digits:
        d1 = _cnpj_digit(digits[:12])
        d2 = _cnpj_digit(digits[:12] + d1)
        return digits[-2:] == d1 + d2
    return True


def normalize_phone_br(phone: str) -> str:
    """Só dígitos, sem o DDI 55 quando vier junto (+55 11 91234-5678)."""
    digits = only_digits(phone)
    if len(digits) in (12, 13) and digits.startswith("55"):
        digits = digits[2:]
    return digits


def validate_phone_br(phone: str) -> bool:
    phone = normalize_phone_br(phone)
    # Aceita 10 ou 11 dígitos (com DDD)
    return len(phone) in (10, 11)


def check_password_policy(
    pw: str,
    min_length: int = 6,
    require_letter_and_digit: bool = False,
) -> bool:
    """
    Regras:
    - mínimo ``min_length`` caracteres
    - máximo 72 bytes (limite do bcrypt; acima disso o hash trunca)
    - opcionalmente pelo menos 1 letra e 1 número
    """
    pw = pw or ""
    if len(pw) < min_length:
        return False
    if password_too_long(pw):
        return False
    if require_letter_and_digit:
        has_letter = any(c.isalpha() for c in pw)
        has_digit = any(c.isdigit() for c in pw)
        return has_letter and has_digit
    return True
