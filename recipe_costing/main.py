import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contextlib import asynccontextmanager

from recipe_costing.config import settings
from recipe_costing.database import init_db
from recipe_costing.exceptions import CostingError
from recipe_costing.schemas import ErrorResponse
from recipe_costing.utils.timezone import get_local_now
from recipe_costing.api.v1 import (
    ingredients,
    vendors,
    packing,
    recipes,
    calculations,
    reports
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("%s started (%s)", settings.APP_NAME, settings.APP_ENV)
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Recipe, ingredient and packaging costing with pricing suggestions and vendor reports",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_headers=["*"],
    allow_origins=settings.allowed_origins_list,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
)


@app.exception_handler(CostingError)
async def costing_error_handler(request: Request, exc: CostingError):
    logger.warning(
        "%s %s -> %s %s: %s",
        request.method, request.url.path, exc.status_code, type(exc).__name__, exc.message
    )
    body = ErrorResponse(
        message=exc.message,
        detail=type(exc).__name__,
        field=exc.field,
        entity=exc.entity,
        entity_id=exc.entity_id
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


# Health check
@app.get("/")
def read_root():
    return {
        "app": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running"
    }

@app.get(f"{settings.API_PREFIX}/health")
def health_check():
    return {"status": "OK", "timestamp": get_local_now().isoformat()}


# Include routers
app.include_router(ingredients.router, prefix=f"{settings.API_PREFIX}/ingredients", tags=["Ingredients"])
app.include_router(vendors.router, prefix=f"{settings.API_PREFIX}/vendors", tags=["Vendors"])
app.include_router(packing.router, prefix=f"{settings.API_PREFIX}/packing", tags=["Packing"])
app.include_router(recipes.router, prefix=f"{settings.API_PREFIX}/recipes", tags=["Recipes"])
app.include_router(calculations.router, prefix=f"{settings.API_PREFIX}/calculations", tags=["Calculations"])
app.include_router(reports.router, prefix=f"{settings.API_PREFIX}/reports", tags=["Reports"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("recipe_costing.main:app", host="0.0.0.0", port=8000, reload=True)
