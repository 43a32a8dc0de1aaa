import uvicorn

from app.core.app_factory import create_app
from app.core.config import settings

app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)
