#!/usr/bin/env python3
"""
Back-Office Sandbox Entry Point

Starts the in-memory sandbox service the console can be pointed at.
"""

import sys

from backoffice.config import get_config
from backoffice.logging_config import setup_logging
from backoffice.sandbox import run_server


if __name__ == "__main__":
    settings = get_config()
    setup_logging(settings.log_level, log_format=settings.log_format, log_file=settings.log_file)

    base = f"http://{settings.sandbox_host}:{settings.sandbox_port}"
    print("🏦 Starting Back-Office Sandbox...")
    print(f"🌐 API available at: {base}{settings.api_prefix}")
    print(f"📚 Documentation at: {base}/docs")
    print()

    try:
        run_server()
    except KeyboardInterrupt:
        print("\n👋 Shutting down Back-Office Sandbox...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
