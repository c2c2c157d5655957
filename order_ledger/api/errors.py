from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from order_ledger.domain.errors import OrderLedgerError
from shared.core import get_logger

logger = get_logger(__name__)

async def order_ledger_error_handler(request: Request, exc: OrderLedgerError) -> JSONResponse:
    fields = {
        'path': request.url.path,
        'error': type(exc).__name__,
        'status_code': exc.status_code,
    }
    if exc.status_code >= 500:
        logger.error(exc.message, exc_info=exc, extra={'extra_fields': fields})
    else:
        logger.warning(exc.message, extra={'extra_fields': fields})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderLedgerError, order_ledger_error_handler)
