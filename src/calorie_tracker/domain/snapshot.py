"""Advisory calorie snapshot shared with the display surface."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CalorieSnapshot(BaseModel):
    """Derived remaining/total/consumed totals at a point in time."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    remaining_calories: int
    total_calories: int
    consumed_calories: int
    last_updated: datetime
