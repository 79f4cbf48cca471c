"""
jobchat API entry point

Configures logging from settings and exposes the ASGI app.

Run with: uvicorn jobchat.app:app --reload
"""

import logging

from jobchat.core.config import get_settings
from jobchat.api.routes import create_app

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create app
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
