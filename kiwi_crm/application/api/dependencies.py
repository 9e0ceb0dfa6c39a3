from typing import Annotated, Any, Optional

import structlog
from fastapi import Depends, Header, Request

from kiwi_crm.domain.models.crm import UserView
from kiwi_crm.infrastructure.config import Settings
from kiwi_crm.infrastructure.database.gateway import PersistenceGateway
from kiwi_crm.infrastructure.llm.chat_model import build_chat_model
from kiwi_crm.infrastructure.security.jwt_validator import extract_bearer_token, verify_token


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> PersistenceGateway:
    return request.app.state.gateway


def get_chat_model(settings: Annotated[Settings, Depends(get_app_settings)]) -> Any:
    """Chat model for one request"""
    return build_chat_model(settings)


async def get_current_user(
    settings: Annotated[Settings, Depends(get_app_settings)],
    gateway: Annotated[PersistenceGateway, Depends(get_gateway)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> UserView:
    """Authenticate the caller and load (or lazily create) their CRM user"""

    identity = verify_token(extract_bearer_token(authorization), settings)
    user = await gateway.get_or_create_user(identity)
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
GatewayDep = Annotated[PersistenceGateway, Depends(get_gateway)]
CurrentUser = Annotated[UserView, Depends(get_current_user)]
ChatModelDep = Annotated[Any, Depends(get_chat_model)]
