from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents the authenticated caller resolved from a bearer token.

    ``email`` is the identity claim used for ownership checks.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: EmailStr
    role: str = "customer"
    exp: Optional[int] = None
