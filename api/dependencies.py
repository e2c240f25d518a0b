"""API Dependencies - Authentication"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from domain.auth import User, UserInDB, UserRole
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Seed accounts; a real deployment loads users from storage
_users_db = {
    "admin": {
        "username": "admin",
        "full_name": "Platform Admin",
        "email": "admin@example.com",
        "plain_password": "admin123",
        "role": UserRole.ADMIN,
        "user_id": "123e4567-e89b-12d3-a456-426614174000"
    },
    "host": {
        "username": "host",
        "full_name": "Demo Host",
        "email": "host@example.com",
        "plain_password": "host123",
        "role": UserRole.HOST,
        "user_id": "123e4567-e89b-12d3-a456-426614174001"
    },
    "guest": {
        "username": "guest",
        "full_name": "Demo Guest",
        "email": "guest@example.com",
        "plain_password": "guest123",
        "role": UserRole.GUEST,
        "user_id": "123e4567-e89b-12d3-a456-426614174002"
    },
}

users_db = _users_db

# Hashing is slow, so hash seed passwords on first use
_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    if username not in _password_hash_cache:
        user = _users_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(db, username: str):
    if username in db:
        user_dict = db[username].copy()
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None


async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = get_user(_users_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_current_host(current_user: User = Depends(get_current_active_user)):
    if current_user.role not in (UserRole.HOST, UserRole.ADMIN):
        raise HTTPException(status_code=403, detail="Host access required")
    return current_user
