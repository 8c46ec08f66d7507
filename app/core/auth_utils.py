from fastapi import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import JWT_ALGORITHM, JWT_SECRET


def decode_token(token: str) -> dict:
    """Verify a bearer token issued by the auth service; 401 on any problem."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    # Subject is the user's email; role is optional for image reads
    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token payload")

    return payload
