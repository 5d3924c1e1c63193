"""
UTXOLedger - API Dependencies
===============================
FastAPI dependency injection utilities.

The controller and settings live on app.state, set by create_app().
"""

from fastapi import HTTPException, Request, status

from utxo_ledger.domain.ledger import LedgerController


def get_controller(request: Request) -> LedgerController:
    """
    Get the ledger controller.
    
    Dependency for FastAPI routes.
    """
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Ledger not initialized"
        )
    return controller


__all__ = [
    "get_controller",
]
