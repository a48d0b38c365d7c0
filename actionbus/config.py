"""
Bus configuration

Uses Pydantic so settings can be loaded from a mapping (e.g. parsed YAML/JSON)
and validated in one step.
"""

from pydantic import BaseModel, Field


class BusConfig(BaseModel):
    """EventBus settings"""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field("default", description="Bus name used in log records")
    log_tracebacks: bool = Field(True, description="Attach tracebacks to failure log records")
    log_unhandled_events: bool = Field(
        False, description="Log a DEBUG record when an executed event has no handlers"
    )
