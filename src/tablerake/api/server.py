"""Run the API under uvicorn.

    tablerake-api
    uvicorn tablerake.api.main:create_app --factory --reload
"""

import os


def main() -> None:
    import uvicorn

    from tablerake.core.config import get_settings
    from tablerake.core.logging import configure_logging

    settings = get_settings()
    configure_logging(log_level=settings.log_level, log_format=settings.log_format)
    reload = os.environ.get("TABLERAKE_API_RELOAD", "false").lower() == "true"

    settings.output_dir.mkdir(parents=True, exist_ok=True)

    print(f"tablerake API on {settings.api_host}:{settings.api_port}")
    print(f"  output dir: {settings.output_dir}")
    print(f"  queue partitions: {settings.queue_partitions}")
    print(f"  in-process workers: {'on' if settings.run_worker else 'off'}")

    uvicorn.run(
        "tablerake.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
