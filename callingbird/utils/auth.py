import time
from typing import Optional

import jwt


def decode_token_payload(token: str) -> dict:
    """
    Decode the payload of a JWT without verifying its signature.

    Raises:
        ValueError: if the token is not a JWT with a JSON object payload
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise ValueError(f"Token could not be decoded: {e}")


def is_token_expired(token: str, now: Optional[float] = None) -> bool:
    """A token that cannot be parsed or carries no numeric exp counts as expired."""
    try:
        payload = decode_token_payload(token)
    except ValueError:
        return True
    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return True
    current_time = time.time() if now is None else now
    return exp < current_time


def token_email(token: str) -> Optional[str]:
    """Email claim of the token, used to prefill the company contact address."""
    try:
        payload = decode_token_payload(token)
    except ValueError:
        return None
    email = payload.get("email")
    return email if isinstance(email, str) and email else None


def is_authenticated(token_provider, now: Optional[float] = None) -> bool:
    token = token_provider.get_token()
    if not token:
        return False
    return not is_token_expired(token, now=now)
