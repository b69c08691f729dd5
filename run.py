#!/usr/bin/env python3
"""
Run script for the portfolio backend
"""
import uvicorn

from portfolio_api.config.settings import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "portfolio_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
