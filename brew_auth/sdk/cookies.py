"""
Cookie Policy - Consistent attributes for the session carriers.

All three carriers are scoped to "/" so API routes receive them. Admin
carriers set by older releases under "/admin" are still cleared by
clear_all().
"""

from dataclasses import dataclass
from typing import List

from brew_auth.domain.session import CarrierName, CARRIER_PRECEDENCE
from brew_auth.domain.user import Role

LEGACY_ADMIN_PATH = "/admin"


@dataclass(frozen=True)
class CookieSpec:
    """A Set-Cookie instruction, independent of the web framework."""
    name: str
    value: str
    max_age: int
    path: str = "/"
    http_only: bool = True
    secure: bool = False
    same_site: str = "lax"

    @property
    def is_deletion(self) -> bool:
        return self.max_age == 0


class CookiePolicy:
    """Builds set/clear instructions for the session carriers."""

    def __init__(self, max_age: int, secure: bool = False, same_site: str = "lax"):
        """
        Args:
            max_age: Carrier lifetime in seconds (the session TTL)
            secure: Set the Secure flag (production)
            same_site: SameSite policy ("lax" or "strict")
        """
        self._max_age = max_age
        self._secure = secure
        self._same_site = same_site

    def issue_session_cookie(self, role: Role, token: str) -> List[CookieSpec]:
        """
        Set the carrier for `role` and clear the others.

        A login never leaves a stale carrier of higher precedence behind,
        and the legacy carrier is retired on every login.
        """
        target = CarrierName.for_role(role)
        cookies = [self._cookie(target.value, token, self._max_age)]
        for carrier in CARRIER_PRECEDENCE:
            if carrier != target:
                cookies.append(self.clear_cookie(carrier.value))
        return cookies

    def reissue(self, carrier: CarrierName, token: str) -> CookieSpec:
        """Replace the token in an existing carrier slot."""
        return self._cookie(carrier.value, token, self._max_age)

    def clear_cookie(self, name: str, path: str = "/") -> CookieSpec:
        return self._cookie(name, "", 0, path=path)

    def clear_session_cookies(self) -> List[CookieSpec]:
        """Clear all three carriers (logout)."""
        return [self.clear_cookie(carrier.value) for carrier in CARRIER_PRECEDENCE]

    def clear_all(self) -> List[CookieSpec]:
        """Clear all carriers, including admin carriers under the old path."""
        cookies = self.clear_session_cookies()
        cookies.append(self.clear_cookie(CarrierName.ADMIN.value, path=LEGACY_ADMIN_PATH))
        return cookies

    def _cookie(self, name: str, value: str, max_age: int, path: str = "/") -> CookieSpec:
        return CookieSpec(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            http_only=True,
            secure=self._secure,
            same_site=self._same_site,
        )
