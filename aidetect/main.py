# aidetect/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from aidetect.core.config import settings
from aidetect.core.logging_config import configure_logging
from aidetect.api.v1.endpoints import events, modules, results, health
from aidetect import init_db

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    configure_logging()
    init_db()


app.include_router(events.router, prefix="/api/v1")
app.include_router(modules.router, prefix="/api/v1")
app.include_router(results.router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
