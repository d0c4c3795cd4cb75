import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from construx.api.routes.documents import router as documents_router
from construx.api.routes.tasks import router as tasks_router
from construx.config import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Construx API",
    description="Construction project task management and task document import",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=r"http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tasks_router)
app.include_router(documents_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
