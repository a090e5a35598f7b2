"""Auth provider contract: supplies the signed-in user's stable identifier"""

from abc import ABC, abstractmethod
from typing import Optional

from spendmart_core.domain.exceptions import AuthenticationError

USER_ID_HEADER = "X-User-ID"


class AuthProvider(ABC):
    @abstractmethod
    def current_user_id(self) -> Optional[str]:
        """Identifier of the signed-in user, or None when signed out"""

    def require_user_id(self) -> str:
        uid = self.current_user_id()
        if not uid:
            raise AuthenticationError("Not signed in.")
        return uid


class StaticAuthProvider(AuthProvider):
    """Fixed identity, for jobs and tests"""

    def __init__(self, user_id: Optional[str]):
        self.user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self.user_id


class HeaderAuthProvider(AuthProvider):
    """Identity asserted by the upstream gateway in a request header"""

    def __init__(self, headers):
        self.headers = headers

    def current_user_id(self) -> Optional[str]:
        value = self.headers.get(USER_ID_HEADER)
        return value.strip() if value and value.strip() else None
