from pydantic import BaseModel
from typing import List, Optional

class TokenData(BaseModel):
    user_id: Optional[int] = None
    email: Optional[str] = None
    roles: List[str] = []

class CallerIdentity(BaseModel):
    """Authenticated caller, passed explicitly to every audited operation"""
    user_id: Optional[int] = None
    email: str
    roles: List[str] = []

    @property
    def actor(self) -> str:
        return self.email

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles or "super_admin" in self.roles
