import asyncio
from datetime import datetime
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from config import ApplicationConfig
from caddy_auth.api.error import ClientError, ServerError
from caddy_auth.app.services.confirmation_tokens import ConfirmationTokens
from caddy_auth.app.services.mailer import AccountMailer
from caddy_auth.app.services.unit_of_work import UnitOfWork
from caddy_auth.app.use_cases.auth import (
    ConfirmSignupResponse,
    ConfirmSignupUseCase,
    LoginResponse,
    LoginUseCase,
    RequestPasswordResetUseCase,
    ResendSignupConfirmationUseCase,
    ResetPasswordResponse,
    ResetPasswordUseCase,
    SignupCommand,
    SignupUseCase,
)
from caddy_auth.app.use_cases.auth.errors import technical_error
from caddy_auth.depends import get_confirmation_tokens, get_mailer, get_unit_of_work
from caddy_auth.domain.entities import ErrorCode
from caddy_auth.libs.result import Result

router = APIRouter(prefix="/auth", tags=["Accounts"])

T = TypeVar("T")

CLIENT_ERROR_STATUS = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.USERNAME_TAKEN: status.HTTP_409_CONFLICT,
    ErrorCode.EMAIL_TAKEN: status.HTTP_409_CONFLICT,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TOKEN_EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.SIGNUP_EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.WRONG_CODE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.RECENTLY_SENT: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.ACCOUNT_DISABLED: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_CONFIRMED: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
}


async def run_use_case(action: str, execution: Awaitable[Result[T]]) -> T:
    """
    Await a use case under the request timeout and unwrap its Result.

    Client errors map through CLIENT_ERROR_STATUS; TECHNICAL_ERROR and
    timeouts become a ServerError (503).
    """
    try:
        result = await asyncio.wait_for(
            execution, timeout=ApplicationConfig.REQUEST_TIMEOUT_SECONDS
        )
    except asyncio.TimeoutError:
        raise ServerError(technical_error(action))

    if result.is_err():
        error = result.error
        status_code = CLIENT_ERROR_STATUS.get(error.code)
        if status_code is None:
            raise ServerError(error)
        raise ClientError(error, status_code=status_code)
    return result.value


def utc_now() -> datetime:
    """Naive UTC, the form every stored timestamp uses"""
    return datetime.utcnow()


class SignupRequest(BaseModel):
    """
    Signup HTTP request payload

    Fields are validated by SignupUseCase so every problem is reported in
    one response.
    """

    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="User email address")
    password: str = Field(..., description="User password (min 8 chars)")
    default_timezone: str = Field("UTC", description="IANA time zone name")


class SignupHttpResponse(BaseModel):
    status: str
    user_id: str
    username: str
    email: str
    email_sent: bool


@router.post(
    "/signup", status_code=status.HTTP_201_CREATED, response_model=SignupHttpResponse
)
async def signup(
    request: SignupRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    confirmation_tokens: ConfirmationTokens = Depends(get_confirmation_tokens),
    mailer: AccountMailer = Depends(get_mailer),
):
    """
    User Signup

    Creates an unconfirmed account and emails the confirmation code.

    Raises:
        - 422 Unprocessable Entity: Invalid signup details (all reasons in details)
        - 409 Conflict: Username or email already taken
        - 503 Service Unavailable: Database or token store failure
    """
    command = SignupCommand(
        username=request.username,
        email=request.email,
        password=request.password,
        default_timezone=request.default_timezone,
    )
    use_case = SignupUseCase(uow, confirmation_tokens, mailer)
    response = await run_use_case(
        "creating your account", use_case.execute(command, utc_now())
    )
    return SignupHttpResponse(**response.model_dump(exclude={"tokens"}))


class ConfirmSignupRequest(BaseModel):
    url_token: str = Field(..., description="Token from the confirmation link")
    confirm_token: str = Field(..., description="Code from the confirmation email")


@router.post(
    "/signup-confirmation",
    status_code=status.HTTP_200_OK,
    response_model=ConfirmSignupResponse,
)
async def confirm_signup(
    request: ConfirmSignupRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    confirmation_tokens: ConfirmationTokens = Depends(get_confirmation_tokens),
):
    """
    Signup Confirmation

    Confirms the account whose pending cycle the url token belongs to.
    Submitting again after success reports status already_confirmed.

    Raises:
        - 400 Bad Request: Expired cycle, expired signup or wrong code
        - 403 Forbidden: Account disabled
        - 503 Service Unavailable: Database or token store failure
    """
    use_case = ConfirmSignupUseCase(uow, confirmation_tokens)
    return await run_use_case(
        "confirming your account",
        use_case.execute(request.url_token, request.confirm_token, utc_now()),
    )


class EmailRequest(BaseModel):
    email: str = Field(..., description="User email address")


class SentHttpResponse(BaseModel):
    status: str
    message: str
    email_sent: bool = False


@router.post(
    "/resend-signup-confirmation",
    status_code=status.HTTP_200_OK,
    response_model=SentHttpResponse,
)
async def resend_signup_confirmation(
    request: EmailRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    confirmation_tokens: ConfirmationTokens = Depends(get_confirmation_tokens),
    mailer: AccountMailer = Depends(get_mailer),
):
    """
    Resend Signup Confirmation

    Starts a new confirmation cycle unless one was emailed during the
    cooldown.

    Raises:
        - 404 Not Found: No user with this email
        - 403 Forbidden: Account disabled
        - 429 Too Many Requests: Confirmation email sent recently
        - 503 Service Unavailable: Database or token store failure
    """
    use_case = ResendSignupConfirmationUseCase(uow, confirmation_tokens, mailer)
    response = await run_use_case(
        "sending the confirmation email", use_case.execute(request.email, utc_now())
    )
    return SentHttpResponse(**response.model_dump(exclude={"tokens"}))


class LoginRequest(BaseModel):
    username_or_email: str = Field(..., description="Username or email address")
    password: str = Field(..., description="User password")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
async def login(request: LoginRequest, uow: UnitOfWork = Depends(get_unit_of_work)):
    """
    User Login

    Decides whether a session may be established. Issuing the session
    itself is left to the caller.

    Raises:
        - 401 Unauthorized: Wrong username/password combination
        - 403 Forbidden: Account disabled or not yet confirmed
        - 503 Service Unavailable: Database failure
    """
    use_case = LoginUseCase(uow)
    return await run_use_case(
        "logging you in",
        use_case.execute(request.username_or_email, request.password, utc_now()),
    )


@router.post(
    "/password-reset-request",
    status_code=status.HTTP_200_OK,
    response_model=SentHttpResponse,
)
async def request_password_reset(
    request: EmailRequest,
    uow: UnitOfWork = Depends(get_unit_of_work),
    mailer: AccountMailer = Depends(get_mailer),
):
    """
    Request Password Reset

    Emails a reset link and code. Unknown emails get the same answer as
    known ones.

    Raises:
        - 403 Forbidden: Account disabled or not yet confirmed
        - 429 Too Many Requests: Too many reset requests in the last 24 hours
        - 503 Service Unavailable: Database failure
    """
    use_case = RequestPasswordResetUseCase(uow, mailer)
    response = await run_use_case(
        "creating a password reset request", use_case.execute(request.email, utc_now())
    )
    return SentHttpResponse(**response.model_dump(exclude={"tokens"}))


class ResetPasswordRequest(BaseModel):
    url_token: str = Field(..., description="Token from the reset link")
    confirm_token: str = Field(..., description="Code from the reset email")
    new_password: str = Field(..., description="New password (min 8 chars)")


@router.post(
    "/password-reset", status_code=status.HTTP_200_OK, response_model=ResetPasswordResponse
)
async def reset_password(
    request: ResetPasswordRequest, uow: UnitOfWork = Depends(get_unit_of_work)
):
    """
    Reset Password

    Each reset request can be tried once; a wrong code spends it.

    Raises:
        - 422 Unprocessable Entity: New password rejected (request not spent)
        - 400 Bad Request: Expired request or wrong code
        - 403 Forbidden: Account disabled
        - 503 Service Unavailable: Database failure
    """
    use_case = ResetPasswordUseCase(uow)
    return await run_use_case(
        "updating your password",
        use_case.execute(
            request.url_token, request.confirm_token, request.new_password, utc_now()
        ),
    )
