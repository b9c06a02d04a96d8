# Run from project root: uvicorn ingestkit.main:app --reload

import logging

from fastapi import FastAPI

from ingestkit.api.routes import router
from ingestkit.core.config import LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL)


app = FastAPI(title="ingestkit", description="Strict multipart upload and JSON body ingestion.")
app.include_router(router)
