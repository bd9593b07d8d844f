import logging
from fastapi import FastAPI
from essaylab.api.routes_session import router as session_router
from essaylab.api.routes_revise import router as revise_router
from essaylab.api.routes_study import router as study_router
from essaylab.middleware.limits import BodySizeLimitMiddleware
from essaylab.core.config import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
)

app = FastAPI(title="essaylab")

app.add_middleware(BodySizeLimitMiddleware)

@app.get("/health")
def health():
    return {"status": "ok"}

app.include_router(session_router)
app.include_router(revise_router)
app.include_router(study_router)
