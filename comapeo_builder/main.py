import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from comapeo_builder.config import LOG_LEVEL
from comapeo_builder.routers import build, imports, languages, settings, system

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

app = FastAPI(title="CoMapeo Config Builder API")
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# routers
app.include_router(build.router)
app.include_router(imports.router)
app.include_router(languages.router)
app.include_router(settings.router)
app.include_router(system.router)
