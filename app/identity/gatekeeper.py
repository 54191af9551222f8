"""Employee gate on top of an IdentityProvider.

check_identity() validates the caller's access token, fetches their profile
and decides whether they are an employee: the profile email must be in the
employee domain AND the account must be of the employee account type.

Failure mapping:
  missing access_token / client_id → ValidationError (400)
  token rejected by the provider   → AuthError (401)
  any provider failure             → InternalError (500), provider message as detail
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from app.constants import (
    DEFAULT_EMPLOYEE_ACCOUNT_TYPE,
    DEFAULT_EMPLOYEE_DOMAIN,
    MSG_IDENTITY_ERROR,
    MSG_INVALID_ACCESS_TOKEN,
    MSG_MISSING_ACCESS_TOKEN,
    MSG_MISSING_CLIENT_ID,
)
from app.identity.provider import IdentityProvider
from app.models.errors import AuthError, InternalError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdentityCheckResult:
    profile: dict[str, Any]
    is_employee: bool

    def to_body(self) -> dict[str, Any]:
        return {"profile": self.profile, "isAdobeEmployee": self.is_employee}


def is_employee_profile(
    profile: dict[str, Any],
    employee_domain: str = DEFAULT_EMPLOYEE_DOMAIN,
    employee_account_type: str = DEFAULT_EMPLOYEE_ACCOUNT_TYPE,
) -> bool:
    """True if the profile email is ``…@<employee_domain>`` and the account type matches.

    The domain comparison is case-insensitive, since mail domains are: IMS
    profiles carrying ``X@ADOBE.COM`` count as employees. A profile without
    a string email is never an employee and does not raise.
    """
    email = profile.get("email")
    if not isinstance(email, str):
        return False
    in_domain = email.lower().endswith(f"@{employee_domain.lower()}")
    return in_domain and profile.get("account_type") == employee_account_type


async def check_identity(
    provider: IdentityProvider,
    access_token: Optional[str],
    client_id: Optional[str],
    employee_domain: str = DEFAULT_EMPLOYEE_DOMAIN,
    employee_account_type: str = DEFAULT_EMPLOYEE_ACCOUNT_TYPE,
) -> IdentityCheckResult:
    if not access_token:
        raise ValidationError(MSG_MISSING_ACCESS_TOKEN)
    if not client_id:
        raise ValidationError(MSG_MISSING_CLIENT_ID)

    try:
        validation = await provider.validate_token(access_token, client_id)
        if not validation.valid:
            raise AuthError(MSG_INVALID_ACCESS_TOKEN)
        profile = await provider.get_profile(access_token, client_id)
    except AuthError:
        raise
    except Exception as exc:
        logger.error(
            "Identity provider call failed",
            client_id=client_id,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise InternalError.from_exception(MSG_IDENTITY_ERROR, exc) from exc

    is_employee = is_employee_profile(profile, employee_domain, employee_account_type)
    logger.info("Identity checked", client_id=client_id, is_employee=is_employee)
    return IdentityCheckResult(profile=profile, is_employee=is_employee)
