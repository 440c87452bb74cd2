import hmac

from fastapi import Header, HTTPException, Query, status

from config import settings


async def verify_webhook_token(
    token: str | None = Query(default=None),
    x_webhook_token: str | None = Header(default=None),
) -> None:
    expected = settings.webhook_token
    if not expected:
        return
    supplied = token or x_webhook_token
    if not supplied or not hmac.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook token"
        )
