from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ParentRegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)


class ParentLoginRequest(BaseModel):
    email: str
    password: str


class KidRegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=255)
    age: int | None = Field(default=None, ge=0)
    parentCode: str


class KidLoginRequest(BaseModel):
    username: str
    password: str


class ParentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    parent_code: str


class KidOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str
    age: int | None
    elf_id: int | None = None


class ParentAuthResponse(BaseModel):
    token: str
    user: ParentOut
    message: str | None = None


class KidAuthResponse(BaseModel):
    token: str
    user: KidOut
