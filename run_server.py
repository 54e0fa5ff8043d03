"""
Massage POS API Runner
Run this as a separate process: python run_server.py
"""

import logging
import os
import sys

import uvicorn

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"🚀 Starting Massage POS API on {host}:{port}...")
    try:
        # One worker: the shop session lives in this process's memory
        uvicorn.run("massage_pos.main:app", host=host, port=port, workers=1)
    except KeyboardInterrupt:
        logger.info("👋 Massage POS API stopped by user")
    except Exception as e:
        logger.error(f"❌ Massage POS API crashed: {e}")
        sys.exit(1)
