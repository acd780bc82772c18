"""Admin authentication schemas."""

from pydantic import BaseModel


class AdminLogin(BaseModel):
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
