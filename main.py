# rental_auth main.py
from fastapi import FastAPI, Depends, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger

# --- Imports do slowapi ---
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
# --- Fim imports slowapi ---
from rental_auth.core.config import settings
from rental_auth.core.exceptions import ApiError
from rental_auth.core.logging import setup_logging
from rental_auth.core.rate_limit import limiter
from rental_auth.db.session import dispose_engine
# Importar routers
from rental_auth.api.endpoints import auth, users, mgmt, health
# Importar dependência de chave de API
from rental_auth.api.dependencies import get_api_key
from rental_auth.api.responses import render_error

# Importar modelos para Alembic/Base.metadata
from rental_auth.db.base import Base  # noqa
from rental_auth.models import user, revoked_token  # noqa

setup_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Autenticação e autorização da API de aluguel de imóveis",
    version="1.0.0",
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Handlers de erro: toda resposta sai no envelope {success, message, data?, errors?} ---
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    response = render_error(exc.message, exc.errors, exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit excedido: {request.client.host if request.client else '?'} em {request.url.path}")
    return render_error(
        "Too many requests", [f"Rate limit exceeded: {exc.detail}"], status.HTTP_429_TOO_MANY_REQUESTS
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Rotas inexistentes (404), método não permitido (405) etc.
    response = render_error(str(exc.detail), None, exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{field}: {error.get('msg')}" if field else error.get("msg", "Invalid input"))
    return render_error("Validation failed", errors, status.HTTP_422_UNPROCESSABLE_ENTITY)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    # Detalhe interno só no log; o cliente recebe uma mensagem genérica
    logger.opt(exception=exc).error(f"Erro inesperado em {request.method} {request.url.path}")
    return render_error("An unexpected error occurred", None, status.HTTP_500_INTERNAL_SERVER_ERROR)
# --- Fim handlers ---


api_prefix = settings.API_PREFIX

# --- Router de Autenticação ---
# /login, /refresh e /register são públicos; /me e /logout exigem Bearer token
app.include_router(auth.router, prefix=f"{api_prefix}/auth", tags=["Authentication"])

# --- Router de Usuários ---
# Todos exigem Bearer token; a decisão por ação fica no gate (core/permissions.py)
app.include_router(users.router, prefix=f"{api_prefix}/users", tags=["Users"])

# --- Router de Gerenciamento ---
# Protegido APENAS pela chave de API
app.include_router(
    mgmt.router,
    prefix=f"{api_prefix}/mgmt",
    tags=["Management"],
    dependencies=[Depends(get_api_key)],
)

app.include_router(health.router, prefix=f"{api_prefix}/health", tags=["Health"])


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down: Disposing database engine...")
    await dispose_engine()
    logger.info("Database engine disposed.")


@app.get("/")
def read_root():
    return {"success": True, "message": f"{settings.PROJECT_NAME} is running!"}
