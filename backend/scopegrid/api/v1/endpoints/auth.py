"""
Auth API Endpoints: Sign-up, Sign-in, Current Credential
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from scopegrid.audit.service import get_client_ip
from scopegrid.database.session import get_db
from scopegrid.schemas.auth import (
    SigninRequest, SignupRequest, SignupResponse, TokenPayload, TokenResponse
)
from scopegrid.schemas.common import APIResponse
from scopegrid.security.dependencies import get_token_payload
from scopegrid.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: Request, body: SignupRequest, db: Session = Depends(get_db)):
    """Register a user under an existing role."""
    return AuthService(db).signup(body, ip_address=get_client_ip(request))


@router.post("/signin", response_model=TokenResponse)
async def signin(body: SigninRequest, db: Session = Depends(get_db)):
    """Authenticate and receive a bearer token carrying the resolved grants."""
    return AuthService(db).authenticate(body)


@router.get("/me", response_model=APIResponse)
async def get_me(payload: TokenPayload = Depends(get_token_payload)):
    """Claims of the presented credential (as issued, not re-resolved)."""
    return APIResponse(data=payload.model_dump(by_alias=True))
