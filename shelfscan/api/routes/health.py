from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shelfscan.database.connection import get_connection
from shelfscan.logging.logger import Log

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health():
    try:
        with get_connection() as conn:
            conn.execute("SELECT 1")
    except Exception as exc:
        Log.warning(f"Health check failed: {exc}")
        return JSONResponse(status_code=503, content={"status": "DEGRADED", "database": "unavailable"})
    return {"status": "OK", "database": "connected"}
