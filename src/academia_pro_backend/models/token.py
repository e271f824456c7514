'''

'''
from typing import Optional
from pydantic import BaseModel, EmailStr
from datetime import datetime

class Token(BaseModel):
    access_token: str
    token_type: str

class TokenPayload(BaseModel):
    sub: EmailStr # 'sub' is standard JWT claim for subject (the user's email)
    exp: datetime
    ver: int = 0 # the user's token_version at issue time
    purpose: Optional[str] = None # None for access tokens, 'reset' for password reset tokens
