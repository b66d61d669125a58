import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import products
import users
from auth import AuthService
from config import API_PREFIX, AUTH_ENABLED, JWT_SECRET, LOG_LEVEL, PORT, UPLOAD_DIR
from errors import register_error_handlers

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    secret: str = JWT_SECRET,
    upload_dir: str = UPLOAD_DIR,
    api_prefix: str = API_PREFIX,
    auth_enabled: bool = AUTH_ENABLED,
) -> FastAPI:
    app = FastAPI(title="Catalog Backend")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if secret == "devsecret":
        logger.warning("JWT_SECRET is not set, signing tokens with the development secret")
    app.state.auth = AuthService(secret)
    app.state.upload_dir = upload_dir
    app.state.auth_enabled = auth_enabled

    register_error_handlers(app)
    app.include_router(products.router, prefix=f"{api_prefix}/products")
    app.include_router(users.router, prefix=f"{api_prefix}/users")

    # ----------------------- Health -----------------------
    @app.get("/")
    def root():
        return {"message": "Catalog API running"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
