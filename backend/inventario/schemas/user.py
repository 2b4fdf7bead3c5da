from typing import Literal, Optional

from pydantic import BaseModel


class UserCreate(BaseModel):
    username: str
    password: str
    name: str
    role: str = "OPERATOR"


class UserRegister(BaseModel):
    username: str
    password: str
    name: str
    confirm_password: Optional[str] = None


class UserLogin(BaseModel):
    username: str
    password: str


class UserUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None


class UserOut(BaseModel):
    id: int
    username: str
    name: str
    role: Literal["ADMIN", "OPERATOR"]

    class Config:
        from_attributes = True
