"""
OXA CRM - API Backend
Prospects, clients, catalogue, devis (standard et CEE), commandes, factures

Démarre avec:
    uvicorn server:app --host 0.0.0.0 --port 8001 --reload
"""

from fastapi import FastAPI, APIRouter
from starlette.middleware.cors import CORSMiddleware
import logging

import config

# Configuration logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("oxa")

# Créer l'app
app = FastAPI(
    title="OXA CRM",
    description="CRM/ERP efficacité énergétique: devis CEE, commandes, factures",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== IMPORT DES ROUTES ====================

from routes import (
    prospects, clients, catalogue, devis, cee,
    commandes, factures, dashboard, event_log,
)
from services.data_source import get_data_source

api_router = APIRouter(prefix="/api")


@api_router.get("/health")
async def health():
    return {"status": "ok", "data_source": get_data_source().name}


api_router.include_router(prospects.router)
api_router.include_router(clients.router)
api_router.include_router(catalogue.router)
api_router.include_router(devis.router)
api_router.include_router(cee.router)
api_router.include_router(commandes.router)
api_router.include_router(factures.router)
api_router.include_router(dashboard.router)
api_router.include_router(event_log.router)

app.include_router(api_router)

# ==================== ROUTE RACINE ====================

@app.get("/")
async def root():
    return {
        "name": "OXA CRM API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs"
    }


# ==================== STARTUP / SHUTDOWN ====================

@app.on_event("startup")
async def startup():
    ds = get_data_source()
    await ds.ensure_indexes()
    logger.info(f"OXA CRM démarré (source de données: {ds.name})")


@app.on_event("shutdown")
async def shutdown():
    get_data_source().close()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
