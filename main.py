from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

import models  # noqa: F401  註冊資料表到 Base.metadata
from database import Base, engine, settings
from api import rooms, participants, pairings, suggestions


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: 在應用啟動時建立資料庫表
    Base.metadata.create_all(bind=engine)
    yield
    # Shutdown: 釋放連線池
    engine.dispose()


app = FastAPI(
    title="Secret Santa API",
    description="Backend API for Secret Santa gift exchange rooms",
    version="1.0.0",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(rooms.router)
app.include_router(participants.router)
app.include_router(pairings.router)
app.include_router(suggestions.router)


@app.get("/")
def root():
    return {"message": "Secret Santa API", "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
