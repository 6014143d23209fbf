import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Cookie, Depends, Request, Response
from itsdangerous import BadData, URLSafeTimedSerializer
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from db import SessionDep
from errors import AuthenticationError, AuthorizationError, ConflictError
from models import Role, User
from schemas import LoginData, LoginResult, UserCreate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

SESSION_COOKIE = "session"

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_serializer(request: Request) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(request.app.state.settings.SECRET_KEY)


def create_session_token(serializer: URLSafeTimedSerializer, user_id: int, role: Role) -> str:
    """
    Store user_id + role in the signed token.
    Example data:
        {"user_id": 3, "role": "restaurant"}
    """
    return serializer.dumps({"user_id": user_id, "role": role.value})


def verify_session_token(
    serializer: URLSafeTimedSerializer, token: str, max_age_seconds: int
) -> Optional[dict]:
    """
    Returns dict {'user_id': ..., 'role': ...} if valid,
    or None if token is invalid/expired.
    """
    try:
        return serializer.loads(token, max_age=max_age_seconds)
    except BadData:
        return None


def set_session_cookie(request: Request, response: Response, user: User) -> None:
    settings = request.app.state.settings
    token = create_session_token(get_serializer(request), user.id, user.role)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.SESSION_MAX_AGE_SECONDS,
    )


def get_current_user(
    request: Request,
    session: SessionDep,
    session_token: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
) -> User:
    """
    Reads the 'session' cookie, verifies the token and looks up the user.
    Raises 401 if not logged in / invalid.
    """
    if session_token is None:
        raise AuthenticationError("Not logged in")

    data = verify_session_token(
        get_serializer(request),
        session_token,
        request.app.state.settings.SESSION_MAX_AGE_SECONDS,
    )
    if not data:
        raise AuthenticationError("Invalid or expired session")

    user = session.get(User, data.get("user_id"))
    if user is None or user.role.value != data.get("role"):
        raise AuthenticationError("User not found for this session")

    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


def require_restaurant(user: CurrentUserDep) -> User:
    if not user.role.can_donate:
        raise AuthorizationError("Only restaurants can access this resource")
    return user


def require_ngo(user: CurrentUserDep) -> User:
    if not user.role.can_claim:
        raise AuthorizationError("Only NGOs can access this resource")
    return user


RestaurantDep = Annotated[User, Depends(require_restaurant)]
NgoDep = Annotated[User, Depends(require_ngo)]


@router.post("/register", response_model=UserRead, status_code=201)
def register(user_in: UserCreate, request: Request, response: Response, session: SessionDep):
    """
    Register a restaurant or NGO with a hashed password and log them in.
    """
    existing = session.exec(
        select(User).where(User.email == user_in.email)
    ).first()
    if existing:
        raise ConflictError("User with this email already exists")

    user = User(
        name=user_in.name,
        email=user_in.email,
        password_hash=hash_password(user_in.password),
        address=user_in.address,
        description=user_in.description,
        role=user_in.role,
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("User with this email already exists")
    session.refresh(user)
    logger.info(f"Registered {user.role.value} {user.id}")

    set_session_cookie(request, response, user)
    return user


@router.post("/login", response_model=LoginResult)
def login(payload: LoginData, request: Request, response: Response, session: SessionDep):
    """
    Log in with email + password and set a signed cookie.
    """
    user = session.exec(
        select(User).where(User.email == payload.email)
    ).first()

    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning(f"Failed login for {payload.email}")
        raise AuthenticationError("Invalid email or password")

    set_session_cookie(request, response, user)
    return LoginResult(message="Login successful", role=user.role)


@router.post("/logout")
def logout(response: Response):
    """
    Clear the session cookie.
    """
    response.delete_cookie(SESSION_COOKIE)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserRead)
def read_me(current: CurrentUserDep):
    """
    Get info about the currently logged-in user.
    """
    return current
