from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.routes import auth, progress, favourites, japa, contact, gita
from app.database import SessionLocal, init_db
from app.middleware.error_handler import setup_error_handlers
from app.services.catalog import get_catalog
from app.services.otp import cleanup_expired_otps
from app.utils.logger import setup_logger

# Setup logging
logger = setup_logger(log_file=settings.LOG_FILE)

# Create database tables
try:
    init_db()
    logger.info("Database tables created successfully")
except Exception as e:
    logger.error(f"Failed to create database tables: {str(e)}", exc_info=True)

app = FastAPI(
    title="Gita Service",
    description="backend for the Bhagavad Gita reading app",
    version="0.1.0"
)

# Setup error handlers
setup_error_handlers(app)

# Cookie sessions need credentialed CORS, so origins are listed explicitly
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(favourites.router)
app.include_router(progress.router)
app.include_router(japa.router)
app.include_router(contact.router)
app.include_router(gita.router)

@app.get("/")
def read_root():
    return {"message": "Server is running"}

@app.get("/health")
def health():
    return {"ok": True}

@app.on_event("startup")
async def startup_event():
    logger.info("Application starting up")

    catalog = get_catalog()
    logger.info(f"Verse catalog ready: {len(catalog.chapters())} chapters, {len(catalog)} verses")

    db = SessionLocal()
    try:
        cleanup_expired_otps(db)
    except Exception as e:
        # A failed cleanup only leaves stale rows behind
        logger.error(f"Expired OTP cleanup failed: {str(e)}", exc_info=True)
    finally:
        db.close()

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutting down")
