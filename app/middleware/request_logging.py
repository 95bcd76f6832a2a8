import time
import logging
from fastapi import Request

logger = logging.getLogger("access")


def _caller_tenant(request: Request) -> str:
    # set by get_current_caller once the token is accepted
    caller = getattr(request.state, "caller", None)
    return str(caller.tenant_id) if caller else "-"


async def request_logging_middleware(request: Request, call_next):
    start_time = time.perf_counter()

    response = await call_next(request)

    process_time = (time.perf_counter() - start_time) * 1000
    level = logging.WARNING if response.status_code >= 500 else logging.INFO

    logger.log(
        level,
        "",
        extra={
            "client_addr": request.client.host if request.client else "unknown",
            "tenant_id": _caller_tenant(request),
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": round(process_time, 2),
        },
    )

    return response
