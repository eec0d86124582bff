# taskminder/api/endpoints/auth.py

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger

from taskminder.core import security
from taskminder.core.config import settings
from taskminder.models.auth import Token

router = APIRouter()

@router.post("/login", response_model=Token, tags=["Authentication"])
async def login_for_access_token(form_data: Annotated[OAuth2PasswordRequestForm, Depends()]):
    """
    Authenticates with username & password form data.
    Returns a JWT bearer token on success.
    """
    username = form_data.username
    log = logger.bind(api_endpoint="/login", username=username)
    log.info("Login attempt received.")

    if not security.authenticate(username, form_data.password):
        log.warning("Authentication failed: Incorrect username or password")
        raise security.CredentialsException

    log.success(f"Authentication successful for user: {username}")
    access_token = security.create_access_token(
        data={"sub": username},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return Token(access_token=access_token, token_type="bearer")
