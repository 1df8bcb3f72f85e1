from pydantic import BaseModel

class TokenPayload(BaseModel):
    sub: int
    role: str | None = None
    jti: str | None = None
    exp: int | None = None
