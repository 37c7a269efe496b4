import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Routers
from routers.health import router as health_router
from routers.problems import router as problems_router

logger = logging.getLogger("math-quiz")
logging.basicConfig(level=logging.INFO)

DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_ORIGINS).split(",") if o.strip()]

app = FastAPI(title="Math Quiz – Problem API")

# Allow calls from the quiz front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def bad_request(request: Request, exc: RequestValidationError):
    # every malformed body is a plain 400 {error}, like the hand-checked fields
    if any(err.get("type") == "json_invalid" for err in exc.errors()):
        message = "Invalid JSON body."
    else:
        message = "Invalid request body."
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message})


@app.get("/")
def health_root():
    return {"ok": True}


app.include_router(problems_router)  # /api/math-problem, /api/math-problem/submit
app.include_router(health_router)  # /health/...
