"""Executable entrypoint: python -m leadcall."""

from __future__ import annotations

import uvicorn

from leadcall.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "leadcall.main:create_app",
        host=settings.host,
        port=settings.port,
        factory=True,
        log_config=None,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
