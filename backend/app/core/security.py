# backend/app/core/security.py
"""
Vérification des JWT émis par le fournisseur d'authentification.
Ce service n'émet jamais de token.
"""
from typing import Any, Dict

from jose import jwt

from app.core.config import settings


def decode_token(token: str) -> Dict[str, Any]:
    """Lève JWTError si la signature ou l'expiration est invalide."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
