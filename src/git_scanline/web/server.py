"""Launch orchestration: uvicorn in a daemon thread, polled until healthy."""
from __future__ import annotations

import sys
import threading
import time
from urllib.error import URLError
from urllib.request import urlopen


def _wait_for_api(api_port: int, timeout_seconds: float = 10.0) -> bool:
    """Poll the FastAPI health path until it responds or timeout expires."""
    deadline = time.time() + timeout_seconds
    url = f"http://localhost:{api_port}/api/health"
    while time.time() < deadline:
        try:
            with urlopen(url, timeout=1) as response:
                if response.status == 200:
                    return True
        except (URLError, OSError):
            pass
        time.sleep(0.2)
    return False


def launch(api_port: int = 8000, host: str = "127.0.0.1") -> None:
    """Serve the report API until interrupted."""
    import uvicorn

    from git_scanline.web.api import app

    def _run_api() -> None:
        uvicorn.run(app, host=host, port=api_port, log_level="warning")

    api_thread = threading.Thread(target=_run_api, daemon=True)
    api_thread.start()

    if not _wait_for_api(api_port):
        print(f"Failed to start API server on http://localhost:{api_port}", file=sys.stderr)
        sys.exit(1)

    print(f"API server:  http://localhost:{api_port}")
    print(f"Try:         http://localhost:{api_port}/api/report?repo=/path/to/repo")
    print()

    try:
        while api_thread.is_alive():
            api_thread.join(timeout=0.5)
    except KeyboardInterrupt:
        print("\nShutting down.")
        sys.exit(0)
