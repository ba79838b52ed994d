import hashlib
import secrets


def generate_token(nbytes=32):
    return secrets.token_urlsafe(nbytes)


def hash_token(token):
    """Tokens handed to users are stored only as their SHA-256 digest."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()
