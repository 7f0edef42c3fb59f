from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from dotenv import load_dotenv

from support_directory.connections.database import close_db_pool
from support_directory.logging.utils import initialize_logging, get_app_logger
from support_directory.middlewares.logging_middleware import AuditMiddleware

load_dotenv()

# Initialize Sentry (must be done early, before other imports)
from support_directory.config.sentry import init_sentry
init_sentry()

# Initialize structured logging
initialize_logging()
logger = get_app_logger('main')

from support_directory.config.settings import DirectoryConfigs
configs = DirectoryConfigs()

logger.info(f"Running in {'debug' if configs.DEBUG else 'production'} mode")

# Collaborators
from support_directory.integrations.sendgrid_email import SendGridEmailSender
from support_directory.integrations.twilio_otp import TwilioOTPProvider
from support_directory.middlewares.access_control import AccessControl, AccessTokenMiddleware
from support_directory.middlewares.rate_limit import RateLimiter, RateLimitMiddleware
from support_directory.repository.accounts import AccountRepository
from support_directory.services.auth_service import AuthService
from support_directory.services.directory_resolver import DirectoryResolver
from support_directory.services.otp_service import build_otp_verifier
from support_directory.services.token_service import TokenIssuer

if not configs.JWT_ACCESS_SECRET:
    logger.warning("jwt_secret_missing | JWT_ACCESS_SECRET is empty, tokens cannot be issued")


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(f"Starting {configs.APP_NAME}")
    yield
    logger.info(f"Shutting down {configs.APP_NAME}")
    close_db_pool()

# Disable docs in production (when DEBUG=false)
docs_url = "/docs" if configs.DEBUG else None
redoc_url = "/redoc" if configs.DEBUG else None

app = FastAPI(
    title="Support Directory",
    version=configs.APP_VERSION,
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url
)

token_issuer = TokenIssuer()
app.state.token_issuer = token_issuer
app.state.access_control = AccessControl(AccountRepository(), token_issuer)
app.state.otp_verifier = build_otp_verifier(TwilioOTPProvider(), token_issuer, AccountRepository())
app.state.email_sender = SendGridEmailSender()
app.state.auth_service = AuthService(AccountRepository(), token_issuer, app.state.email_sender)
app.state.directory_resolver = DirectoryResolver()

origins = configs.ALLOWED_ORIGINS or ["*"]

# Bearer token validation for the admin surface
app.add_middleware(AccessTokenMiddleware)

# Per-IP throttling of credential and redirect endpoints, checked before authentication
app.state.rate_limiter = RateLimiter()
if configs.RATE_LIMIT_ENABLED:
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)

# Request/Audit logging middleware, wraps authentication so denials are audited too
app.add_middleware(AuditMiddleware)

logger.info(f"Configuring CORS with allowed origins: {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register custom exception handlers
from support_directory.middlewares.handlers import register_exception_handlers
register_exception_handlers(app)


# Routes
from support_directory.routes import directory_router
from support_directory.routes.health import router as health_router

app.include_router(directory_router)
app.include_router(health_router, tags=["health"])
