#!/usr/bin/env python3
"""
Start the dialog service with console logging
"""

import os

import uvicorn

from logging_config import setup_logging
from propbot.config import settings


def start_server():
    """Configure logging, then serve propbot.main:app"""
    setup_logging(settings.LOG_LEVEL)

    print("🏠 Starting Propbot dialog service...")
    print(f"   Platform: {settings.PLATFORM_NAME}")
    print(f"   AI configured: {settings.ai_configured}")
    print("-" * 50)

    try:
        uvicorn.run(
            "propbot.main:app",
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=settings.LOG_LEVEL.lower(),
            log_config=None,
        )
    except KeyboardInterrupt:
        print("\n🛑 Server stopped")


if __name__ == "__main__":
    start_server()
