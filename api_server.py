from __future__ import annotations  # FastAPI server exposing mock interview sessions

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router


logger = logging.getLogger(__name__)

app = FastAPI(title="Mock Interview API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)
app.include_router(router)


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}
