from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from filmify.core.database import init_db
from filmify.api import access, auth, movies, notifications, purchases, reviews, ticketing
from filmify.utils.logger import logger
from filmify.utils.timezone import utc_now

app = FastAPI(title="Filmify API", version="1.0.0")

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(movies.router, prefix="/api/movies", tags=["Movies"])
app.include_router(access.router, prefix="/api/access", tags=["Access"])
app.include_router(purchases.router, prefix="/api/purchases", tags=["Purchases"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["Reviews"])
app.include_router(ticketing.router, prefix="/api/ticketing", tags=["Ticketing"])
app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])


@app.on_event("startup")
async def startup_event():
    await init_db()
    logger.info("Filmify API started")


@app.get("/")
def root():
    return {"status": "Filmify API Running"}


@app.get("/health")
async def health_check():
    """Simple health check endpoint for load balancers/monitoring"""
    try:
        from filmify.core.redis_client import get_redis
        from filmify.core.database import SessionLocal

        await get_redis().ping()

        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()

        return {"status": "healthy", "timestamp": utc_now().isoformat()}
    except Exception as e:
        from fastapi import HTTPException
        logger.warning(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail=f"Service unhealthy: {str(e)}")
