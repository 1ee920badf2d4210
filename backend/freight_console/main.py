"""
Main FastAPI application entry point.
"""
import logging
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from freight_console.api import archives, shipments, quotes, costing, suppliers, skeletons
from freight_console.db.database import engine, Base
from freight_console.services.auth import get_current_user

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Freight Console",
    description="Shipment archives, forwarder quotes, import costing and post-arrival workflow",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

protected = [Depends(get_current_user)]

# Archives must be registered before the shipment routes so /archives is not read as a shipment id
app.include_router(archives.router, prefix="/api/shipments/archives", tags=["archives"], dependencies=protected)
app.include_router(shipments.router, prefix="/api/shipments", tags=["shipments"], dependencies=protected)
app.include_router(quotes.router, prefix="/api/quotes", tags=["quotes"], dependencies=protected)
app.include_router(costing.router, prefix="/api/costing", tags=["costing"], dependencies=protected)
app.include_router(suppliers.router, prefix="/api/suppliers", tags=["suppliers"], dependencies=protected)
app.include_router(skeletons.router, prefix="/api/skeletons", tags=["skeletons"], dependencies=protected)


@app.get("/")
async def root():
    return {"message": "Freight Console API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
