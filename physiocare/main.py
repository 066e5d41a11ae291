from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from physiocare.config import settings
from physiocare.db import engine, Base, SessionLocal
from physiocare.routers import patients, physiotherapists, appointments, requests, reschedule, chat
from physiocare.services.storage import restore_collections
from physiocare.logger import get_logger

log = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
	# Create tables on startup; the snapshot blobs refill empty collections
	Base.metadata.create_all(bind=engine)
	db = SessionLocal()
	try:
		restore_collections(db)
	finally:
		db.close()
	yield


app = FastAPI(title="PhysioCare Scheduling API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

app.include_router(patients.router)
app.include_router(physiotherapists.router)
app.include_router(appointments.router)
app.include_router(requests.router)
app.include_router(reschedule.router)
app.include_router(chat.router)

@app.get("/")

def root():
	return {"status": "ok", "env": settings.app_env}


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
	log.exception("Unhandled error: %s", exc)
	return JSONResponse(status_code=500, content={"detail": "Internal server error"})
