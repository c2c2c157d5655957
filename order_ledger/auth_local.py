from dataclasses import dataclass
from enum import Enum
import jwt
from typing import Optional
from .core_settings import get_settings

class Role(str, Enum):
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"

@dataclass(frozen=True)
class Principal:
    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

def decode_access_token(token: str) -> Optional[Principal]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
        return Principal(user_id=int(payload["sub"]), role=Role(payload.get("role", Role.CUSTOMER.value)))
    except (jwt.PyJWTError, KeyError, ValueError):
        return None
