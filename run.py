"""
Launch script for PrimoBoost AI.

Checks the environment and opens the web application in the browser.

Usage:
    python run.py
"""
import subprocess
import sys
import time
import urllib.request
import urllib.error
import os
import webbrowser
import threading

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
APP_URL = "http://localhost:8000"


def _print(msg: str) -> None:
    print(f"[run] {msg}")


def check_python_deps() -> bool:
    """Check that required Python packages are installed."""
    missing = []
    for pkg in ["fastapi", "uvicorn", "jinja2", "httpx", "pydantic",
                "sse_starlette", "itsdangerous"]:
        try:
            __import__(pkg)
        except ImportError:
            missing.append(pkg)

    if missing:
        _print(f"Missing Python packages: {', '.join(missing)}")
        _print("Install with: pip install -e .[dev]")
        return False
    return True


def check_remote_chat() -> bool:
    """Report whether the hosted chat-completion endpoint is configured."""
    url = os.environ.get("SUPABASE_URL", "").strip()
    key = os.environ.get("SUPABASE_ANON_KEY", "").strip()
    if not url or not key:
        _print("SUPABASE_URL / SUPABASE_ANON_KEY not set.")
        _print("Chat will answer from the local knowledge base only.")
        return False
    _print(f"Remote chat endpoint: {url.rstrip('/')}/functions/v1/ai-proxy")
    return True


def open_browser() -> None:
    """Wait for the web server to be ready, then open the browser."""
    for _ in range(30):
        try:
            req = urllib.request.Request(APP_URL, method="GET")
            with urllib.request.urlopen(req, timeout=2) as resp:
                if resp.status == 200:
                    _print(f"Opening browser at {APP_URL}")
                    webbrowser.open(APP_URL)
                    return
        except (urllib.error.URLError, ConnectionError, OSError):
            pass
        time.sleep(1)
    _print("WARNING: Could not verify server is running. Open manually: " + APP_URL)
    webbrowser.open(APP_URL)


def launch_app() -> None:
    """Launch the FastAPI web application via uvicorn."""
    _print(f"Launching PrimoBoost AI at {APP_URL} ...")

    # Open browser in a background thread (waits for server to start)
    threading.Thread(target=open_browser, daemon=True).start()

    subprocess.run(
        [sys.executable, "-m", "src"],
        cwd=PROJECT_ROOT,
    )


def main() -> int:
    _print("=" * 50)
    _print("PrimoBoost AI - Launcher")
    _print("=" * 50)

    # 1. Check Python dependencies
    _print("Checking Python dependencies...")
    if not check_python_deps():
        return 1
    _print("Python dependencies OK.")

    # 2. Remote chat configuration (optional)
    check_remote_chat()

    # 3. Launch app
    launch_app()
    return 0


if __name__ == "__main__":
    sys.exit(main())
