from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str


class PrincipalRead(BaseModel):
    id: str
    role: str
