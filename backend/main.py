import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.errors import PersistenceError
from backend.database import Base, engine
from backend.models import attendance, group, schedule, student, subject, user  # noqa: F401
from backend.routes import attendance_routes, auth_routes, catalog_routes, student_routes, user_routes

logging.basicConfig(level=config.LOG_LEVEL)

app = FastAPI(title='School Management API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


def describe_validation_errors(errors) -> str:
    messages = []
    for error in errors:
        location = [str(part) for part in error.get('loc', ()) if part not in ('body', 'path', 'query')]
        message = error.get('msg', 'Invalid value').removeprefix('Value error, ')
        messages.append(f"{'.'.join(location)}: {message}" if location else message)
    return '; '.join(messages) or 'Invalid request'


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': describe_validation_errors(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error('Unhandled database error on %s %s.', request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'detail': PersistenceError.default_detail},
    )


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')


@app.get('/')
def root():
    return {'status': 'School Management API Running'}


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(user_routes.router, prefix='/api/users')
app.include_router(student_routes.router)
app.include_router(catalog_routes.router)
app.include_router(attendance_routes.router)
