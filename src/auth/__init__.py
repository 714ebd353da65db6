# Auth: password hashing, JWT issuing/verification, account service
from src.auth.password import hash_password, verify_password
from src.auth.session import create_token, decode_token, verify_token
from src.auth.service import AuthService

__all__ = [
    "hash_password",
    "verify_password",
    "create_token",
    "decode_token",
    "verify_token",
    "AuthService",
]
