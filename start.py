#!/usr/bin/env python3
"""Launch the Webnovel Studio backend on the first free local port."""

from __future__ import annotations

import argparse
import os
import socket
import subprocess
import sys
import time
import urllib.error
import urllib.request
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
BACKEND_DIR = ROOT_DIR / "backend"


def find_available_port(start_port: int) -> int:
    port = start_port
    while True:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if sock.connect_ex(("127.0.0.1", port)) != 0:
                return port
        port += 1


def wait_until_healthy(base_url: str, timeout_seconds: int = 60) -> bool:
    deadline = time.time() + timeout_seconds
    while time.time() < deadline:
        try:
            with urllib.request.urlopen(f"{base_url}/api/health", timeout=2) as response:
                if response.status == 200:
                    return True
        except (urllib.error.URLError, TimeoutError):
            time.sleep(0.5)
    return False


def main() -> int:
    parser = argparse.ArgumentParser(description="Launch the Webnovel Studio backend")
    parser.add_argument("--port", type=int, default=8000, help="First port to try")
    parser.add_argument("--data-dir", help="Where stories.json and universes.json live")
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args()

    port = find_available_port(args.port)
    env = os.environ.copy()
    env["WEBNOVEL_LOG_LEVEL"] = args.log_level
    if args.data_dir:
        env["WEBNOVEL_DATA_DIR"] = str(Path(args.data_dir).resolve())

    cmd = [sys.executable, "-m", "uvicorn", "main:app", "--host", "127.0.0.1", "--port", str(port), "--log-level", args.log_level]
    proc = subprocess.Popen(cmd, cwd=BACKEND_DIR, env=env)
    try:
        if not wait_until_healthy(f"http://127.0.0.1:{port}"):
            print("[ERROR] backend did not become ready in time", file=sys.stderr)
            proc.terminate()
            return 1
        print(f"[launcher] backend ready: http://127.0.0.1:{port}")
        return proc.wait()
    except KeyboardInterrupt:
        return 0
    finally:
        if proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=8)
            except subprocess.TimeoutExpired:
                proc.kill()


if __name__ == "__main__":
    raise SystemExit(main())
