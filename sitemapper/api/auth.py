import os
import logging
import secrets
from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

logger = logging.getLogger(__name__)

ADMIN_TOKEN_ENV = "SITEMAPPER_ADMIN_TOKEN"

# Static bearer token for mutating operations (create, start, stop, tuning).
# No token configured means those routes are disabled.
security = HTTPBearer()


def require_admin(creds: HTTPAuthorizationCredentials = Security(security)):
    token = creds.credentials if creds is not None else None
    admin = os.getenv(ADMIN_TOKEN_ENV)
    if not admin:
        logger.error("%s not set - admin endpoints are disabled", ADMIN_TOKEN_ENV)
        raise HTTPException(status_code=503, detail=f"{ADMIN_TOKEN_ENV} not configured")
    if not secrets.compare_digest(token or "", admin):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return True
