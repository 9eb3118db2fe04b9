# lb_ipam/main.py
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .api.v1.endpoints import router as api_router
from .config import Settings, settings
from .core.controller import Controller


def create_app(app_settings: Settings = settings, controller: Optional[Controller] = None) -> FastAPI:
    logging.basicConfig(
        level=app_settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(title=app_settings.PROJECT_NAME)
    app.state.controller = controller if controller is not None else Controller.from_settings(app_settings)
    app.include_router(api_router, prefix=app_settings.API_V1_STR)

    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": "lb-ipam-controller",
            "pools": len(app.state.controller.allocator.pools),
        }

    return app


def main() -> None:
    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
