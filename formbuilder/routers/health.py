import time

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from formbuilder.core.exceptions import error_body
from formbuilder.db.init_db import check_db
from formbuilder.schemas.common import success_response

router = APIRouter(tags=["health"])


# Health check endpoint with additional status info
@router.get("/health")
def health_check(request: Request):
    state = request.app.state
    database_ok = check_db(state.engine)
    status_info = {
        "timestamp": time.time(),
        "database": "connected" if database_ok else "disconnected",
        "rate_limiter": state.rate_limiter.backend if state.rate_limiter else "disabled",
    }

    if not database_ok:
        body = error_body(status.HTTP_503_SERVICE_UNAVAILABLE, "Server is unhealthy")
        body["data"] = status_info
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)

    return success_response(status_info, message="Server is healthy")
