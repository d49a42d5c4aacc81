from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import httpx
from app.config import settings
from structlog import get_logger

logger = get_logger()
security = HTTPBearer()

async def get_current_user(credentials: HTTPAuthorizationCredentials = Security(security)):
    async with httpx.AsyncClient(timeout=10.0) as client:
        try:
            logger.info("Verifying token with user management service", url=f"{settings.USER_MANAGEMENT_URL}/auth/verify")

            response = await client.get(
                f"{settings.USER_MANAGEMENT_URL}/auth/verify",
                headers={"Authorization": f"Bearer {credentials.credentials}"}
            )
            response.raise_for_status()
            user_data = response.json()
            logger.info("User verified", user_id=user_data.get("id"), role=user_data.get("role"))
            return user_data
        except httpx.HTTPStatusError as e:
            logger.error("Token verification failed", status_code=e.response.status_code, response=e.response.text)
            raise HTTPException(status_code=401, detail="Invalid token")
        except httpx.RequestError as e:
            logger.error("User management service is unavailable", error=str(e))
            raise HTTPException(status_code=503, detail="User management service is unavailable")

async def get_caller_id(user: dict = Depends(get_current_user)) -> str:
    """Owner identity used for every ownership check; ids are compared as strings."""
    user_id = user.get("id")
    if user_id is None:
        logger.error("Verified user has no id", user=user)
        raise HTTPException(status_code=401, detail="Invalid token")
    return str(user_id)
