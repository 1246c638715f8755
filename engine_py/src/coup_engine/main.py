"""ASGI entry point for the game hub backend"""

import logging

from .ws.server import app, config

# Configure logging
logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.DEBUG))
logger = logging.getLogger(__name__)


@app.get("/")
async def root():
    return {"message": "Coup Game Hub API", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.host, port=config.port)
