"""Application (integration channel) entity, joined read-only into listings."""
from enum import Enum

from sqlalchemy import String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from api.shared.entities.base import BaseEntity


class AppType(str, Enum):
    """Channel through which end users reach the assistant."""

    WEB = "web"
    WIDGET = "widget"
    DINGTALK_BOT = "dingtalk_bot"
    FEISHU_BOT = "feishu_bot"
    WECHAT_BOT = "wechat_bot"
    WECHAT_SERVICE_BOT = "wechat_service_bot"
    DISCORD_BOT = "discord_bot"
    WECHAT_OFFICIAL_ACCOUNT = "wechat_official_account"
    OPENAI_API = "openai_api"


class App(BaseEntity):
    __tablename__ = "apps"

    kb_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AppType] = mapped_column(
        SQLEnum(
            AppType,
            native_enum=False,
            length=32,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )
