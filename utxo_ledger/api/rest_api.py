"""
UTXOLedger - REST API
=======================
HTTP transport over the ledger controller.

Endpoints:
- POST /blocks - Ingest a block
- GET /balance/{address} - Current balance of an address
- POST /rollback?height=H - Roll the ledger back to height H
- GET / - Service info
- GET /chain/head - Current chain head
"""

from typing import Optional

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Internal imports
from utxo_ledger.api.deps import get_controller
from utxo_ledger.api.middleware import RequestIDMiddleware, RequestLoggingMiddleware
from utxo_ledger.api.schemas import (
    BalanceResponse,
    BlockSchema,
    ErrorResponse,
    HeadResponse,
    HealthResponse,
    MessageResponse,
)
from utxo_ledger.config import LedgerSettings
from utxo_ledger.constants import MSG_BLOCK_ACCEPTED, MSG_ROLLBACK_OK, PROJECT_NAME
from utxo_ledger.domain.ledger import LedgerController
from utxo_ledger.domain.results import ErrorKind, Rejected
from utxo_ledger.errors import ValidationError as LedgerValidationError
from utxo_ledger.logging_setup import get_logger
from utxo_ledger.version import __version__, get_build_info


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("api")


# ============================================================================
# REJECTION MAPPING
# ============================================================================

STATUS_BY_KIND = {
    ErrorKind.SEQUENTIAL_HEIGHT_VIOLATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNRESOLVED_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.IMBALANCED_TRANSACTION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_BLOCK_ID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_ROLLBACK_TARGET: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ADDRESS_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Rejected"},
    500: {"model": ErrorResponse, "description": "Store failure"},
}


def rejection_response(result: Rejected) -> JSONResponse:
    """Map a rejected result to its HTTP response"""
    return JSONResponse(
        status_code=STATUS_BY_KIND.get(result.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=jsonable_encoder(result.to_dict()),
    )


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed body or query: 400 instead of FastAPI's default 422"""
    logger.info(
        f"Malformed request: {request.method} {request.url.path}",
        extra_data={"errors": len(exc.errors())}
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def ledger_validation_handler(request: Request, exc: LedgerValidationError) -> JSONResponse:
    """Structural domain errors raised while building domain objects"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": exc.message,
            "details": jsonable_encoder(exc.to_dict()),
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        f"[{request_id}] Unhandled error: {type(exc).__name__}: {exc}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": ErrorKind.STORE_FAILURE.reason},
    )


# ============================================================================
# ROUTES
# ============================================================================

def register_routes(app: FastAPI) -> None:
    """Attach ledger routes to app"""
    
    @app.get("/", response_model=HealthResponse)
    def root():
        """Root endpoint"""
        return HealthResponse(
            name=f"{PROJECT_NAME} API",
            version=__version__,
            status="running",
            build=get_build_info()
        )
    
    @app.get("/chain/head", response_model=HeadResponse)
    def chain_head(controller: LedgerController = Depends(get_controller)):
        """Height of the last accepted block"""
        return HeadResponse(height=controller.get_head())
    
    @app.post("/blocks", response_model=MessageResponse, responses=ERROR_RESPONSES)
    def submit_block(
        body: BlockSchema,
        controller: LedgerController = Depends(get_controller)
    ):
        """
        Ingest a block.
        
        The block is accepted only if its height is head + 1, every input
        resolves to an unspent output, inputs and outputs balance, and
        its id matches the height and transaction ids.
        """
        result = controller.ingest_block(body.to_domain())
        
        if not result.ok:
            return rejection_response(result)
        
        return MessageResponse(message=MSG_BLOCK_ACCEPTED)
    
    @app.get(
        "/balance/{address}",
        response_model=BalanceResponse,
        responses={404: {"model": ErrorResponse, "description": "Address not found"}}
    )
    def get_balance(
        address: str,
        controller: LedgerController = Depends(get_controller)
    ):
        """Current balance of address"""
        result = controller.get_balance(address)
        
        if not result.ok:
            return rejection_response(result)
        
        return BalanceResponse(balance=result.value)
    
    @app.post("/rollback", response_model=MessageResponse, responses=ERROR_RESPONSES)
    def rollback(
        height: int = Query(..., description="Target height"),
        controller: LedgerController = Depends(get_controller)
    ):
        """Roll the ledger back so that height becomes the chain head"""
        result = controller.rollback_to(height)
        
        if not result.ok:
            return rejection_response(result)
        
        return MessageResponse(message=MSG_ROLLBACK_OK)


# ============================================================================
# APP FACTORY
# ============================================================================

def create_app(
    controller: LedgerController,
    config: Optional[LedgerSettings] = None
) -> FastAPI:
    """
    Build the FastAPI application.
    
    Args:
        controller: Ledger controller serving every route
        config: Settings (CORS); None disables CORS
    
    Returns:
        FastAPI: Configured application
    
    Examples:
        >>> app = create_app(controller, config)
        >>> uvicorn.run(app, host=config.api_host, port=config.api_port)
    """
    app = FastAPI(
        title=f"{PROJECT_NAME} API",
        description="REST API for the UTXO ledger index",
        version=__version__
    )
    
    app.state.controller = controller
    app.state.config = config
    
    # Middleware (last added runs first)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    
    if config is not None and config.api_enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(LedgerValidationError, ledger_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    
    register_routes(app)
    
    logger.info(
        "API initialized",
        extra_data={"cors": bool(config and config.api_enable_cors)}
    )
    
    return app


__all__ = [
    "STATUS_BY_KIND",
    "rejection_response",
    "create_app",
]
