"""
Tapestry Server Entry Point

Run with: python main.py
Or with uvicorn: uvicorn app:app --reload

Host and port come from TAPESTRY_HOST / TAPESTRY_PORT (environment or .env).
The server binds to localhost by default: it serves one local editor.
"""

import os

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()

    # Use reload only in development
    is_dev = os.getenv("ENVIRONMENT", "development") == "development"

    uvicorn.run(
        "app:app",
        host=os.getenv("TAPESTRY_HOST", "127.0.0.1"),
        port=int(os.getenv("TAPESTRY_PORT", "8000")),
        reload=is_dev,
        log_level=os.getenv("TAPESTRY_LOG_LEVEL", "info").lower(),
    )
