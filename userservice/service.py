"""HTTP API exposing CRUD operations over the in-memory user repository."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime
from typing import Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect

from .models import User, format_timestamp, parse_timestamp, utcnow
from .repository import UserConflictError, UserNotFoundError, UserRepository

logger = logging.getLogger("userservice.service")

USER_ID_BYTES = 16


class UserPayload(BaseModel):
    """Body accepted by the create and replace endpoints."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    username: str = ""
    email: str = ""
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("username", "email", "first_name", "last_name", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: object) -> object:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("timestamps must be RFC 3339 strings")
        return parse_timestamp(value)


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_serializer("created_at", "updated_at")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def generate_user_id() -> str:
    """Return 16 bytes of CSPRNG output as 32 lowercase hex characters."""

    return secrets.token_hex(USER_ID_BYTES)


async def _read_payload(request: Request) -> UserPayload:
    try:
        body = await request.body()
    except ClientDisconnect as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Error reading request body",
        ) from exc

    # Pydantic parses the raw bytes: non-objects, lone surrogates and
    # over-deep nesting all surface as ValidationError.
    try:
        return UserPayload.model_validate_json(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid JSON format",
        ) from exc


def path_user_id(user_id: str) -> str:
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user ID")
    return user_id


def create_app(
    *,
    repository: UserRepository | None = None,
    id_factory: Callable[[], str] | None = None,
) -> FastAPI:
    """Instantiate the FastAPI application serving the user API."""

    repo = repository if repository is not None else UserRepository()
    new_user_id = id_factory or generate_user_id

    app = FastAPI(
        title="User Service",
        version="0.1.0",
        description="CRUD API over an in-memory user store.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.repository = repo

    def get_repository() -> UserRepository:
        return repo

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/users", response_model=List[UserResponse])
    async def list_users(users: UserRepository = Depends(get_repository)) -> List[UserResponse]:
        return [user_to_response(user) for user in users.get_all()]

    @app.post(
        "/api/users",
        response_model=UserResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_user(
        request: Request,
        users: UserRepository = Depends(get_repository),
    ) -> UserResponse:
        payload = await _read_payload(request)

        user_id = payload.id
        if not user_id:
            try:
                user_id = new_user_id()
            except (OSError, NotImplementedError) as exc:
                logger.exception("Unable to generate a user identifier")
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Failed to generate user ID",
                ) from exc

        user = User.new(
            user_id,
            payload.username,
            payload.email,
            payload.first_name,
            payload.last_name,
        )

        try:
            stored = users.create(user)
        except UserConflictError as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

        logger.info("Created user %s (username=%s)", stored.id, stored.username)
        return user_to_response(stored)

    @app.get("/api/users/{user_id:path}", response_model=UserResponse)
    async def read_user(
        user_id: str = Depends(path_user_id),
        users: UserRepository = Depends(get_repository),
    ) -> UserResponse:
        logger.debug("Fetching user %s", user_id)
        try:
            user = users.get_by_id(user_id)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return user_to_response(user)

    @app.put("/api/users/{user_id:path}", response_model=UserResponse)
    async def replace_user(
        request: Request,
        user_id: str = Depends(path_user_id),
        users: UserRepository = Depends(get_repository),
    ) -> UserResponse:
        if user_id not in users:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        payload = await _read_payload(request)

        now = utcnow()
        # created_at is overwritten with the stored value inside the write lock.
        user = User(
            id=user_id,
            username=payload.username,
            email=payload.email,
            first_name=payload.first_name,
            last_name=payload.last_name,
            created_at=now,
            updated_at=now,
        )

        try:
            stored = users.update(user, preserve_created_at=True)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

        logger.info("Updated user %s", stored.id)
        return user_to_response(stored)

    @app.delete("/api/users/{user_id:path}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_user(
        user_id: str = Depends(path_user_id),
        users: UserRepository = Depends(get_repository),
    ) -> Response:
        try:
            users.delete(user_id)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

        logger.info("Deleted user %s", user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            detail = "Method not allowed"
        else:
            detail = str(exc.detail)
        return PlainTextResponse(
            detail,
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> PlainTextResponse:
        return PlainTextResponse("Invalid request", status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> PlainTextResponse:
        logger.error(
            "Unhandled error while serving %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return PlainTextResponse(
            "Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return app


__all__ = [
    "UserPayload",
    "UserResponse",
    "create_app",
    "generate_user_id",
    "path_user_id",
    "user_to_response",
]
