import base64
import json
import logging
import time
from typing import Awaitable, Callable, Optional
from urllib.parse import quote

import httpx
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import ADMIN_EMAILS, FIREBASE_PROJECT_ID
from .database import get_db
from .models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

REDIRECT_HEADER = "X-Redirect-To"

TokenVerifier = Callable[[str], Awaitable[dict]]

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys():
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys:
        logger.debug("✅ Using cached Google public keys")
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_CERTS_URL)
            if response.status_code == 200:
                _cached_keys = response.json()
                logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
                return _cached_keys
            logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode(segment: str) -> bytes:
    padding_len = 4 - len(segment) % 4
    return base64.urlsafe_b64decode(segment + ("=" * padding_len if padding_len != 4 else ""))


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token with full signature verification.
    Uses Google's public keys to verify the RS256 JWT signature, then checks claims.
    """
    global _cached_keys

    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Firebase not configured")

    parts = token.split(".")
    if len(parts) != 3:
        logger.warning(f"⚠️ Malformed token received: {len(parts)} parts")
        raise HTTPException(status_code=401, detail="Invalid token format")

    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
    except (ValueError, UnicodeDecodeError) as e:
        logger.error(f"❌ Failed to decode token header: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token header") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256" or not kid:
        logger.error(f"❌ Invalid token header: alg={header.get('alg')}, kid={kid}")
        raise HTTPException(status_code=401, detail="Invalid token header")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, invalidating cache and retrying")
        _cached_keys = None
        public_keys = await get_google_public_keys()
        if not public_keys or kid not in public_keys:
            logger.error(f"❌ Key ID {kid} not found in public keys after retry")
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    cert = load_pem_x509_certificate(public_keys[kid].encode(), default_backend())

    try:
        signature = _b64decode(signature_b64)
        cert.public_key().verify(
            signature,
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    claims = json.loads(_b64decode(payload_b64))

    if claims.get("aud") != FIREBASE_PROJECT_ID:
        logger.error("❌ Token audience mismatch")
        raise HTTPException(status_code=401, detail="Invalid token audience")

    if claims.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        logger.error("❌ Token issuer mismatch")
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if claims.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )

    # Allow 60 seconds clock skew
    if claims.get("iat", 0) > now + 60:
        logger.warning("⚠️ Token issued in the future")
        raise HTTPException(status_code=401, detail="Invalid token")

    logger.debug(f"✅ Token verified for user: {claims.get('email')}")
    return claims


def get_token_verifier() -> TokenVerifier:
    """Dependency returning the identity provider's token verifier"""
    return verify_firebase_token


def login_redirect(request: Request) -> str:
    """Sign-in path that returns the user to the page they came from"""
    return_path = request.headers.get("X-Return-Path") or request.url.path
    return f"/auth/login?redirect={quote(return_path, safe='/')}"


def sync_user(db: Session, claims: dict) -> User:
    """Find or create the local user record for verified token claims"""
    firebase_uid = claims.get("sub") or claims.get("user_id") or claims.get("uid")
    if not firebase_uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    email = (claims.get("email") or "").lower() or None
    name = claims.get("name") or ""
    phone = claims.get("phone_number")

    user = db.query(User).filter(User.firebase_uid == firebase_uid).first()
    if user:
        return user

    # Same email, new sign-in method (e.g. email/password first, Google later)
    if email:
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            logger.info(f"🔄 Migrating user {email} to Firebase UID {firebase_uid}")
            existing_user.firebase_uid = firebase_uid
            if name and not existing_user.name:
                existing_user.name = name
            db.commit()
            db.refresh(existing_user)
            return existing_user

    logger.info(f"🆕 Creating new user: {email or phone or firebase_uid}")
    user = User(
        firebase_uid=firebase_uid,
        email=email,
        name=name,
        phone=phone,
        is_verified=bool(claims.get("email_verified")),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    verify: TokenVerifier = Depends(get_token_verifier),
) -> Optional[User]:
    """Current user, or None for anonymous requests (e.g. browsing the cart)"""
    if not credentials:
        return None
    claims = await verify(credentials.credentials)
    return sync_user(db, claims)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    verify: TokenVerifier = Depends(get_token_verifier),
) -> User:
    """
    Current user from the Firebase token.
    Missing or invalid credentials are answered with a sign-in redirect.
    """
    redirect_headers = {REDIRECT_HEADER: login_redirect(request)}

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Please sign in to continue.",
            headers=redirect_headers,
        )

    try:
        claims = await verify(credentials.credentials)
    except HTTPException as e:
        if e.status_code != 401:
            raise
        raise HTTPException(
            status_code=401,
            detail=e.detail,
            headers={**(e.headers or {}), **redirect_headers},
        ) from e

    return sync_user(db, claims)


def is_admin(user: User) -> bool:
    return user.role == "admin" or (user.email or "").lower() in ADMIN_EMAILS


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Restrict a route to the admin dashboard"""
    if not is_admin(user):
        logger.warning(f"⚠️ User {user.email} attempted to access an admin route")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
