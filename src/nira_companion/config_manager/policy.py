# config_manager/policy.py
from pydantic import BaseModel, Field


class PolicyConfig(BaseModel):
    """Trial, onboarding and usage accounting knobs."""

    default_trial_limit_minutes: float = Field(5, ge=0)
    name_max_length: int = Field(20, ge=1)
    session_gap_minutes: float = Field(10, gt=0)
    new_session_minutes: float = Field(0.5, ge=0)
    # pro users keep chatting while maintenance mode is on
    maintenance_allows_pro: bool = True
