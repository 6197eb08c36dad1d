"""
Banque Rupt API Application Factory
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .auth import router as auth_router
from .accounts import router as accounts_router
from .transactions import router as transactions_router
from .cards import router as cards_router
from .admin import router as admin_router
from .employee import router as employee_router
from ..errors import BankingError, ErrorKind, StorageFailure
from ..logging_config import get_logger
from ..system import BankingSystem
from .. import __version__


logger = get_logger("banque_rupt.api")

STATUS_BY_KIND = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORAGE_FAILURE: 500,
}


def status_for(error: BankingError) -> int:
    """HTTP status for a banking error; validation and business rules are 400"""
    return STATUS_BY_KIND.get(error.kind, 400)


async def banking_error_handler(request: Request, exc: BankingError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        body = StorageFailure().to_dict()
    else:
        body = exc.to_dict()
    return JSONResponse(status_code=status_code, content=body)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unexpected error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content=StorageFailure().to_dict())


def create_app(system: BankingSystem) -> FastAPI:
    """Create and configure the FastAPI application around a banking system"""
    app = FastAPI(
        title="Banque Rupt API",
        description="Retail banking: accounts, transfers, back-office adjustments and cards",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.system = system

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BankingError, banking_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
    app.include_router(accounts_router, prefix="/api/accounts", tags=["Accounts"])
    app.include_router(transactions_router, prefix="/api/transactions", tags=["Transactions"])
    app.include_router(cards_router, prefix="/api/cards", tags=["Cards"])
    app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])
    app.include_router(employee_router, prefix="/api/employee", tags=["Employee"])

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "banque_rupt_api",
            "version": __version__
        }

    return app
