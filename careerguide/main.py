import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.datastructures import Headers
from starlette.responses import Response

from careerguide.core import config
from careerguide.core.errors import register_exception_handlers
from careerguide.database import Base, engine, ensure_meeting_schema, ensure_message_schema
from careerguide.models import counselor, meeting, message, notification, user  # noqa: F401
from careerguide.routes import (
    ai_routes,
    auth_routes,
    counselor_routes,
    meeting_routes,
    message_routes,
    notification_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

config.validate_runtime_config()


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose accepted preflight answers carry no body."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value for key, value in response.headers.items()
            if key not in ('content-length', 'content-type')
        }
        return Response(status_code=200, headers=headers)


app = FastAPI(title='CareerGuide API')

app.add_middleware(
    EmptyPreflightCORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials='*' not in config.CORS_ALLOW_ORIGINS,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_meeting_schema()
        ensure_message_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'CareerGuide API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(counselor_routes.router, prefix='/counselors')
app.include_router(message_routes.router, prefix='/messages')
app.include_router(meeting_routes.router, prefix='/meetings')
app.include_router(notification_routes.router, prefix='/notifications')
app.include_router(ai_routes.router, prefix='/ai')
