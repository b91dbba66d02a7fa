#!/usr/bin/env python3
"""
Python-based startup script for the ESG Report Scorer API.
"""

import os
import subprocess
import sys

from dotenv import load_dotenv


def main():
    """Main entry point."""
    print("=" * 60)
    print("ESG Report Scorer API Server")
    print("=" * 60)

    load_dotenv()

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    workers = int(os.getenv("WORKERS", "1"))
    rules_path = os.getenv("ESG_RULES_PATH", "").strip()

    print("\nConfiguration:")
    print(f"  Host: {host}")
    print(f"  Port: {port}")
    print(f"  Workers: {workers}")
    print(f"  Criteria: {'rule file ' + rules_path if rules_path else 'built-in only'}")
    print(f"  Criterion threads per analysis: {os.getenv('ESG_MAX_WORKERS', '1')}")
    print(f"  Analysis timeout: {os.getenv('ESG_ANALYSIS_TIMEOUT_S') or 'none'}")

    print(f"\nAPI Documentation: http://localhost:{port}/docs")
    print("=" * 60)

    cmd = [
        sys.executable, "-m", "uvicorn",
        "app:app",
        "--host", host,
        "--port", str(port),
    ]

    if workers == 1:
        cmd.append("--reload")
    else:
        cmd.extend(["--workers", str(workers)])

    try:
        subprocess.run(cmd)
    except KeyboardInterrupt:
        print("\n\nShutting down server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
