from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import validation_error_handler
from src.api.routes.breakdown import router as breakdown_router
from src.api.routes.content import router as content_router
from src.api.routes.email import router as email_router
from src.api.routes.enhance import router as enhance_router
from src.api.routes.transcribe import router as transcribe_router
from src.api.routes.voicemail import router as voicemail_router
from src.config import settings
from src.logging_config import configure_logging

configure_logging(settings.log_level)

app = FastAPI(
    title="Task Intake API",
    description="Turns typed text, voicemails, emails and notes into structured tasks",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
    ],
    allow_origin_regex=r"https://.*\.vercel\.app|http://localhost:\d+",
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(breakdown_router)
app.include_router(voicemail_router)
app.include_router(content_router)
app.include_router(transcribe_router)
app.include_router(enhance_router)
app.include_router(email_router)

app.add_exception_handler(RequestValidationError, validation_error_handler)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}
