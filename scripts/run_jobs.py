"""CLI entrypoint to launch the locked job runtime."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from cachelock.core.cache_memory import MemoryCache
from cachelock.core.factory import create_cache, create_lock_factory, create_retry_policy
from cachelock.core.settings import RuntimeSettings
from cachelock.jobs import JobRuntime, PurgeExpiredJob
from cachelock.utils.logging import get_logger


logger = get_logger("JobCLI")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Run lock-guarded periodic jobs.")
    parser.add_argument(
        "--config", type=Path, default=Path("config/cachelock.example.yml"), help="Path to runtime YAML"
    )
    args = parser.parse_args()

    settings = RuntimeSettings.from_file(args.config)
    cache = create_cache(settings)
    lock_factory = create_lock_factory(settings, cache)
    retry_policy = create_retry_policy(settings.retry)

    runtime = JobRuntime()
    interval = settings.jobs.purge_interval_seconds
    if isinstance(cache, MemoryCache) and interval:
        runtime.register(
            PurgeExpiredJob(cache, lock_factory=lock_factory, interval_seconds=interval, retry_policy=retry_policy)
        )
    else:
        logger.warning("No jobs to run for cache backend %s", settings.cache.backend)

    try:
        await runtime.run_forever()
    finally:
        await cache.close()


if __name__ == "__main__":
    asyncio.run(main())
