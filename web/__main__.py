"""
Web 진입점

실행 방법:
    python -m web
"""

import uvicorn

from core.config.loader import get_settings

if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "web.app:create_app",
        factory=True,
        host=settings.config.web_host,
        port=settings.config.web_port,
        reload=False,
    )
