from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from core.config_loader import settings
from core.logging_config import setup_logging
from availability.router import availability_router

setup_logging()

openapi_tags = [
    {
        "name": "Availability",
        "description": "Rule normalization and effective availability",
    },
    {
        "name": "Health Checks",
        "description": "Application health checks",
    }
]

app = FastAPI(title="Availability Engine", openapi_tags=openapi_tags)

if settings.cors_origins_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            origin.strip("/") for origin in settings.cors_origins_list
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(availability_router, prefix="/api")


@app.get("/health", tags=['Health Checks'])
def read_root():
    return {"health": "true"}
