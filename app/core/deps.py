from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from app.core.security import decode_jwt

bearer = HTTPBearer(auto_error=False)

def get_current_actor(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Missing authorization token")
    try:
        return decode_jwt(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

def actor_role(actor: dict) -> str:
    return str(actor.get("role") or "").strip().upper()
