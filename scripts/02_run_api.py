#!/usr/bin/env python3
"""
启动论文仓库 API 服务

用法:
  python scripts/02_run_api.py
  python scripts/02_run_api.py --port 8001 --host 0.0.0.0
  python scripts/02_run_api.py --workers 4
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> None:
    from config.settings import settings
    parser = argparse.ArgumentParser(description="Run the research repository API")
    parser.add_argument("--host", default=settings.api.host, help="Bind host")
    parser.add_argument("--port", type=int, default=settings.api.port, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Enable reload (dev)")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes (default 1). Tokens are stateless so workers need no coordination. Ignored when --reload.",
    )
    args = parser.parse_args()

    import uvicorn

    if args.reload or args.workers > 1:
        # reload / multi-worker need an import string
        kwargs = {"host": args.host, "port": args.port, "reload": args.reload}
        if not args.reload:
            kwargs["workers"] = args.workers
        uvicorn.run("src.api.server:create_app", factory=True, **kwargs)
        return

    from src.api.server import create_app
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
