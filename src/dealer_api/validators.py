"""Input validators for Dealer API request bodies and query parameters."""

# Standard Library
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
PHONE_RE = re.compile(r"\+?[0-9\s\-()]{10,}")
LEADING_INT_RE = re.compile(r"\s*([+-]?[0-9]+)")
WHITESPACE_RE = re.compile(r"\s+")

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class ValidationError(ValueError):
    """Raised when user input cannot be accepted."""


class RoleName(str, Enum):
    """Dealership roles."""

    ADMIN = "ADMIN"
    GENERAL_MANAGER = "GENERAL_MANAGER"
    SALES_MANAGER = "SALES_MANAGER"
    TEAM_LEAD = "TEAM_LEAD"
    CUSTOMER_ADVISOR = "CUSTOMER_ADVISOR"


@dataclass
class ValidationResult:
    """Collected validation errors for one input."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class Pagination:
    """Parsed page/limit pair with the derived row offset."""

    page: int
    limit: int
    skip: int


def validate_email(email: Any) -> bool:
    return isinstance(email, str) and EMAIL_RE.fullmatch(email) is not None


def validate_password(password: Any) -> ValidationResult:
    """Check password strength.

    Every failing rule adds its own message, so callers can show all of
    them at once.

    Args:
        password: Candidate password.

    Returns:
        ValidationResult with one message per failed rule.
    """

    result = ValidationResult()
    if not password or not isinstance(password, str):
        result.errors.append("Password is required")
        return result

    if len(password) < MIN_PASSWORD_LENGTH:
        result.errors.append(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if len(password) > MAX_PASSWORD_LENGTH:
        result.errors.append(
            f"Password must not exceed {MAX_PASSWORD_LENGTH} characters"
        )
    if not re.search(r"[a-z]", password):
        result.errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        result.errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[0-9]", password):
        result.errors.append("Password must contain at least one number")
    return result


def validate_role(role: Any) -> bool:
    return role in {r.value for r in RoleName}


def _parse_int(value: str | int | None, default: int) -> int | None:
    """Parse a leading integer from a query string value.

    Returns None when the value has no leading digits.
    """

    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    match = LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else None


def validate_pagination(
    page: str | int | None = None, limit: str | int | None = None
) -> Pagination:
    """Parse and bound pagination query parameters.

    Args:
        page: 1-based page number, default 1.
        limit: Page size, default 10, at most 100.

    Returns:
        Pagination with the row offset for the page.

    Raises:
        ValidationError: If page or limit is out of range or not a number.
    """

    parsed_page = _parse_int(page, DEFAULT_PAGE)
    parsed_limit = _parse_int(limit, DEFAULT_LIMIT)

    if parsed_page is None or parsed_page < 1:
        raise ValidationError("Page must be a positive integer")
    if parsed_limit is None or parsed_limit < 1 or parsed_limit > MAX_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_LIMIT}")

    return Pagination(
        page=parsed_page,
        limit=parsed_limit,
        skip=(parsed_page - 1) * parsed_limit,
    )


def validate_uuid(value: Any) -> bool:
    return isinstance(value, str) and UUID_RE.fullmatch(value) is not None


def sanitize_string(value: Any) -> str:
    """Trim and collapse runs of whitespace; non-strings become empty."""

    if not value or not isinstance(value, str):
        return ""
    return WHITESPACE_RE.sub(" ", value.strip())


def validate_phone_number(phone: Any) -> bool:
    return isinstance(phone, str) and PHONE_RE.fullmatch(phone) is not None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def validate_amount(amount: Any) -> bool:
    return _is_number(amount) and amount > 0


def validate_quantity(quantity: Any) -> bool:
    if not _is_number(quantity) or quantity < 0:
        return False
    if isinstance(quantity, int):
        return True
    return quantity.is_integer()


def _require_string(body: dict[str, Any], key: str, label: str) -> str | None:
    value = body.get(key)
    if not value or not isinstance(value, str):
        return f"{label} is required and must be a string"
    return None


def validate_register_request(body: dict[str, Any]) -> ValidationResult:
    """Validate a user registration payload.

    Args:
        body: Decoded JSON body with name, email, password and roleName.

    Returns:
        ValidationResult listing every problem found.
    """

    result = ValidationResult()

    error = _require_string(body, "name", "Name")
    if error:
        result.errors.append(error)
    elif len(body["name"].strip()) < 2:
        result.errors.append("Name must be at least 2 characters long")

    error = _require_string(body, "email", "Email")
    if error:
        result.errors.append(error)
    elif not validate_email(body["email"]):
        result.errors.append("Invalid email format")

    error = _require_string(body, "password", "Password")
    if error:
        result.errors.append(error)
    else:
        result.errors.extend(validate_password(body["password"]).errors)

    error = _require_string(body, "roleName", "Role name")
    if error:
        result.errors.append(error)
    elif not validate_role(body["roleName"]):
        result.errors.append("Invalid role name")

    return result


def validate_login_request(body: dict[str, Any]) -> ValidationResult:
    """Validate a login payload (email and password)."""

    result = ValidationResult()

    error = _require_string(body, "email", "Email")
    if error:
        result.errors.append(error)
    elif not validate_email(body["email"]):
        result.errors.append("Invalid email format")

    error = _require_string(body, "password", "Password")
    if error:
        result.errors.append(error)

    return result
