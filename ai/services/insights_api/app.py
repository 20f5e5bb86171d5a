# -*- coding: utf-8 -*-
"""
Emotional Journal Insights API
------------------------------
- POST   /analyze  : informe de insights del usuario para un rango
- GET    /entries  : registros del usuario en un rango
- POST   /entries  : guarda un registro
- DELETE /me       : borra datos y cuenta del usuario
- GET    /healthz  : health check

Notes:
- Auth: Authorization: Bearer <supabase_access_token> en todas las rutas salvo /healthz
- Stateless por request (solo hay caché de verificación de tokens)
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api_analyze import register_analyze_routes
from api_entries import register_entries_routes
from api_me import register_me_routes
from llm_client import aclose_llm_http_client
from supabase_client import aclose_async_client

APP_NAME = os.getenv("INSIGHTS_APP_NAME", "Emotional Journal Insights")
PORT = int(os.getenv("INSIGHTS_PORT", "8765"))
HOST = os.getenv("INSIGHTS_HOST", "0.0.0.0")
# For release, set INSIGHTS_CORS_ORIGINS to a comma-separated list of allowed origins.
ALLOWED_ORIGINS_RAW = os.getenv("INSIGHTS_CORS_ORIGINS", "*")
ALLOWED_ORIGINS = [o.strip() for o in ALLOWED_ORIGINS_RAW.split(",") if o.strip()] or ["*"]

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("insights")

# ---------- App ----------
app = FastAPI(title=APP_NAME, version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_analyze_routes(app)
register_entries_routes(app)
register_me_routes(app)


@app.on_event("shutdown")
async def _close_http_clients() -> None:
    await aclose_async_client()
    await aclose_llm_http_client()


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"status": "ok", "app": APP_NAME}


# ---------- Entrypoint ----------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host=HOST, port=PORT, log_level="info")
