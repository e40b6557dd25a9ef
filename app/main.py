from fastapi import FastAPI
from app.core.config import settings
from app.core.logging_setup import configure_logging
from app.core.middleware import AuditMiddleware
from app.core.sync import HubRegistry
from app.api import health, collections, receipts

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title=settings.PROJECT_NAME)
app.add_middleware(AuditMiddleware)

# Merged views live as long as the process; each tenant gets its own hub
app.state.hubs = HubRegistry()

app.include_router(health.router)
app.include_router(collections.router)
app.include_router(receipts.router)

@app.on_event("shutdown")
async def shutdown_event():
    # Release every remote subscription before the views go away
    app.state.hubs.close_all()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
