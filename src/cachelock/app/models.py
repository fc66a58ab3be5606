from typing import List

from pydantic import BaseModel


class JobSummary(BaseModel):
    job_id: str
    running: bool


class HealthState(BaseModel):
    cache_backend: str
    locking_enabled: bool
    jobs_started: bool
    jobs: List[JobSummary]


class LockStatus(BaseModel):
    key: str
    locked: bool
