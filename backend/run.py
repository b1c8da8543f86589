#!/usr/bin/env python3
"""
Run script for the Demo Builder API.
Usage: python run.py
"""

import os

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "demo_builder.main:app",
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 3005)),
        reload=os.environ.get("RELOAD", "false").lower() == "true"
    )
