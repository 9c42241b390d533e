"""User settings model."""

from enum import StrEnum

from pydantic import BaseModel, Field

DEFAULT_DAILY_CALORIE_TARGET = 2000
DEFAULT_DAY_RESET_HOUR = 0


class Provider(StrEnum):
    """Remote multimodal AI backends."""

    OPENAI = "openai"
    CLAUDE = "claude"


class UserSettings(BaseModel):
    """The single settings record for this installation."""

    daily_calorie_target: int = Field(default=DEFAULT_DAILY_CALORIE_TARGET, ge=0)
    day_reset_hour: int = Field(default=DEFAULT_DAY_RESET_HOUR, ge=0, le=23)
    provider: Provider = Provider.OPENAI
    api_key: str = ""
