"""Start the chatrelay HTTP server: ``python -m chatrelay``."""

import uvicorn

from .config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "chatrelay.api:create_app",
        factory=True,
        host=settings.CHAT_HOST,
        port=settings.CHAT_PORT,
    )
