from contextlib import asynccontextmanager
from fastapi import FastAPI
from dotenv import load_dotenv
import os

load_dotenv()

from infrastructure.metrics.metrics import metrics_endpoint
from infrastructure.db.database import create_tables
from app.routers.v1 import router

# Import database models to ensure they're registered
from infrastructure.db.models import Base, AgreementModel, InstallmentModel, SmsLogModel  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI):
    # No migrations tool; tables are created on startup when asked to
    if os.getenv("DB_CREATE_TABLES", "") == "1":
        await create_tables()
    yield


app = FastAPI(title="aghsat-service", lifespan=lifespan)

@app.get("/metrics")
async def metrics():
    return metrics_endpoint()

@app.get("/health")
async def health():
    return {"status": "ok", "message": "aghsat-service is running"}

app.include_router(router)
