"""FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mortgage_ie.api.routes import breakeven, simulate
from mortgage_ie.config import settings

logging.basicConfig(level=settings.log_level)

app = FastAPI(
    title="Mortgage IE",
    description="Irish mortgage simulation and breakeven comparisons",
    version="0.1.0",
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(simulate.router)
app.include_router(breakeven.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
