import logging
from typing import Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def service_error(e: Exception, tag: str) -> HTTPException:
    """Map an unexpected exception to a user-friendly HTTP error."""
    error_msg = str(e).lower()
    logger.exception(f"[{tag}] {e}")

    if any(word in error_msg for word in ("busy", "rate limit", "quota", "unavailable")) or "429" in str(e):
        return HTTPException(
            status_code=503,
            detail="Server is currently busy due to high demand. Please try again in a few moments.",
        )
    if "timed out" in error_msg or "timeout" in error_msg:
        return HTTPException(status_code=504, detail="Request timed out. Please try again.")
    return HTTPException(status_code=500, detail=f"An error occurred: {str(e)}")


def limit_reached(reason: str, upgrade_to: Optional[str] = None, remaining: Optional[float] = None) -> HTTPException:
    detail = {"error": reason, "code": "LIMIT_REACHED", "upgrade_to": upgrade_to}
    if remaining is not None:
        detail["remaining"] = remaining
    return HTTPException(status_code=403, detail=detail)


def feature_locked(feature: str, upgrade_to: Optional[str] = None) -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={
            "error": f"Your plan does not include {feature.replace('_', ' ')}",
            "code": "FEATURE_LOCKED",
            "upgrade_to": upgrade_to,
        },
    )
