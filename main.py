#!/usr/bin/env python3
"""
Entry point for the LegalTenderPay verification service.
"""

import logging

import uvicorn

from app.config import HOST, LOG_LEVEL, PORT

if __name__ == "__main__":
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "app.main:app",
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL.lower(),
    )
