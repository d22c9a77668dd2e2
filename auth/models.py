from typing import Optional
from pydantic import BaseModel

USER_CLIENT_ID = "user"
ADMIN_CLIENT_ID = "admin"


class ClientIdentity:
    """Caller identity derived from the bearer credential; lives for one request."""

    def __init__(self, id: str, is_admin: bool = False):
        self.id = id
        self.is_admin = is_admin

    @classmethod
    def user(cls) -> "ClientIdentity":
        return cls(USER_CLIENT_ID, is_admin=False)

    @classmethod
    def admin(cls) -> "ClientIdentity":
        return cls(ADMIN_CLIENT_ID, is_admin=True)

    def __eq__(self, other):
        if not isinstance(other, ClientIdentity):
            return NotImplemented
        return self.id == other.id and self.is_admin == other.is_admin

    def __hash__(self):
        return hash((self.id, self.is_admin))

    def __repr__(self):
        return f"ClientIdentity(id={self.id!r}, is_admin={self.is_admin})"


class ValidateKeyRequest(BaseModel):
    apiKey: Optional[str] = None


class ValidateKeyResponse(BaseModel):
    success: bool = True
    message: str = "API key is valid"
    clientId: str
