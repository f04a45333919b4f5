#!/usr/bin/env python3
"""
Run script for the Parle backend
"""
import uvicorn

from parle.config.settings import settings
from parle.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
