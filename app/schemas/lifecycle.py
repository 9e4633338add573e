from pydantic import BaseModel, ConfigDict


class LifecycleRunResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    activated: int
    expired_termination_requests: int
    finalized_terminations: int
