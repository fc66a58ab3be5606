"""FastAPI application exposing cache, lock and job status endpoints."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from cachelock import __version__
from cachelock.app.filters import DuplicateRequestError, duplicate_request_handler, header_user_resolver
from cachelock.app.models import HealthState, JobSummary, LockStatus
from cachelock.core.cache import Cache
from cachelock.core.cache_memory import MemoryCache
from cachelock.core.factory import create_cache, create_lock_factory, create_retry_policy
from cachelock.core.settings import RuntimeSettings
from cachelock.jobs import JobRuntime, PurgeExpiredJob
from cachelock.utils.logging import get_logger


logger = get_logger("CacheLockAPI")


def create_app(config_path: Optional[Path] = None, *, cache: Optional[Cache] = None) -> FastAPI:
    settings = RuntimeSettings.from_file(config_path)
    if cache is None:
        cache = create_cache(settings)
    lock_factory = create_lock_factory(settings, cache)
    retry_policy = create_retry_policy(settings.retry)

    runtime = JobRuntime()
    purge_interval = settings.jobs.purge_interval_seconds
    if isinstance(cache, MemoryCache) and purge_interval:
        runtime.register(
            PurgeExpiredJob(
                cache,
                lock_factory=lock_factory,
                interval_seconds=purge_interval,
                retry_policy=retry_policy,
            )
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):  # pragma: no cover - exercised under a server
        await runtime.start()
        try:
            yield
        finally:
            await runtime.stop()
            await cache.close()

    app = FastAPI(title="cachelock", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.cache = cache
    app.state.lock_factory = lock_factory
    app.state.user_resolver = header_user_resolver(settings.lock.user_header)
    app.state.retry_policy = retry_policy
    app.state.job_runtime = runtime
    app.add_exception_handler(DuplicateRequestError, duplicate_request_handler)

    @app.get("/")
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": "cachelock",
            "version": __version__,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "lock_status": "/locks/{key}",
                "api_docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthState)
    async def health() -> HealthState:
        return HealthState(
            cache_backend=cache.backend_name,
            locking_enabled=settings.lock.enabled,
            jobs_started=runtime.started,
            jobs=[JobSummary(job_id=job.config.job_id, running=job.running) for job in runtime.jobs],
        )

    @app.get("/locks/{key:path}", response_model=LockStatus)
    async def lock_status(key: str) -> LockStatus:
        return LockStatus(key=key, locked=await cache.exists(key))

    logger.info("Application configured with %s", cache.backend_name)
    return app


# Default ASGI app when run via `uvicorn cachelock.app.main:app` with env CACHELOCK_CONFIG

config_env = os.getenv("CACHELOCK_CONFIG", "config/cachelock.example.yml")
app = create_app(Path(config_env))
