"""
HTTP verification service for JLS.

A thin wrapper that owns the network I/O: it accepts a license document,
runs the shared LicenseVerifier and reports the typed result. Run with
any ASGI server, e.g. `uvicorn jls.service:app`.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Header, HTTPException, Request

from . import config
from .errors import InitError, VerificationError
from .logging_config import set_correlation_id
from .models import FailureDetail, HealthResponse, LicenseOut, VerifyResponse
from .verifier import LicenseVerifier

logger = logging.getLogger(__name__)


def _get_verifier(request: Request) -> LicenseVerifier:
    verifier = request.app.state.verifier
    if verifier is None:
        try:
            verifier = LicenseVerifier(config.load_public_key())
        except (OSError, ValueError, InitError) as e:
            logger.error("Cannot load issuer key from %s: %s", config.PUBLIC_KEY_PATH, e)
            raise HTTPException(503, "VERIFIER_UNAVAILABLE") from e
        request.app.state.verifier = verifier
    return verifier


def create_app(verifier: Optional[LicenseVerifier] = None) -> FastAPI:
    """
    Build the service.

    Args:
        verifier: Verifier to share across requests (default: built on
            first use from JLS_PUBLIC_KEY_PATH)
    """
    app = FastAPI(
        title="JLS License Verification",
        docs_url=None if config.is_production() else "/docs",
        redoc_url=None if config.is_production() else "/redoc",
    )
    app.state.verifier = verifier

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request):
        v = _get_verifier(request)
        return HealthResponse(status="ok", algorithm=v.algorithm, key_id=v.public_key.key_id)

    @app.post("/verify", response_model=VerifyResponse)
    def verify(
        request: Request,
        document: Dict[str, Any] = Body(...),
        x_correlation_id: Optional[str] = Header(default=None),
    ):
        set_correlation_id(x_correlation_id)
        v = _get_verifier(request)
        try:
            license = v.verify(document)
        except VerificationError as e:
            detail = FailureDetail(failure=e.kind.value, reason=e.reason, details=e.details)
            raise HTTPException(403, detail.model_dump())
        return VerifyResponse(license=LicenseOut.from_license(license))

    return app


app = create_app()
