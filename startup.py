import os
import sys
import uvicorn
import logging
import traceback

# Configure logging to stdout (the app lifespan reconfigures it from LOG_* settings)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

# Add the src directory to Python path
current_dir = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)


def announce(msg: str, level: int = logging.INFO) -> None:
    # Use print with flush so the line shows up even before logging is configured
    print(msg, flush=True)
    logger.log(level, msg)


announce("=" * 60)
announce("Reception Desk Backend Startup")
announce("=" * 60)
announce(f"Python version: {sys.version.split()[0]}")
announce(f"Current directory: {current_dir}")
announce(f"Source path: {src_path}")

# Log critical environment variables (without exposing secrets)
announce("\nEnvironment Configuration:")
announce(f"  PORT: {os.environ.get('PORT', '8000')}")
announce(f"  APP_ENV: {os.environ.get('APP_ENV', 'not set')}")
mongo_uri_set = os.environ.get('MONGO_URI') or os.environ.get('MONGODB_URI')
announce(f"  MONGO_URI: {'✅ set' if mongo_uri_set else '❌ not set (using mongodb://localhost:27017)'}")
announce(f"  MONGO_DB_NAME: {os.environ.get('MONGO_DB_NAME') or os.environ.get('MONGODB_DB') or 'not set'}")
announce(f"  AUTH_REQUIRE_SESSION: {os.environ.get('AUTH_REQUIRE_SESSION', 'false')}")
announce(f"  OUTBOX_ENABLED: {os.environ.get('OUTBOX_ENABLED', 'true')}")
secret_key = os.environ.get('SECURITY_SECRET_KEY')
if secret_key:
    announce(f"  SECURITY_SECRET_KEY length: {len(secret_key)} chars {'✅' if len(secret_key) >= 32 else '❌ (must be >= 32)'}")
else:
    announce("  SECURITY_SECRET_KEY: ⚠️  not set (using default)", logging.WARNING)

if __name__ == "__main__":
    try:
        try:
            from receptiondesk.core.config import get_settings
            settings = get_settings()
        except ValueError as ve:
            announce(f"❌ Configuration validation failed: {ve}", logging.ERROR)
            announce(traceback.format_exc(), logging.ERROR)
            announce("\n⚠️  Common configuration issues:", logging.ERROR)
            announce("  1. SECURITY_SECRET_KEY must be >= 32 characters", logging.ERROR)
            announce("  2. MONGO_URI must start with mongodb:// or mongodb+srv://", logging.ERROR)
            sys.exit(1)

        port = int(os.environ.get("PORT", settings.port))
        host = os.environ.get("HOST", settings.host)
        announce(f"  App: {settings.app_name} v{settings.app_version} ({settings.app_env})")

        # Test import before starting
        try:
            from receptiondesk.app import app  # noqa: F401
            announce("✅ Successfully imported receptiondesk.app")
        except Exception as import_error:
            announce(f"❌ Failed to import receptiondesk.app: {import_error}", logging.ERROR)
            announce(traceback.format_exc(), logging.ERROR)
            sys.exit(1)

        sep = "=" * 60
        announce(f"\n{sep}\nStarting uvicorn server on {host}:{port}...\n{sep}\n")
        # A single worker: relay rooms and the outbox loop live in-process
        uvicorn.run(
            "receptiondesk.app:app",
            host=host,
            port=port,
            workers=1,
            log_level="info",
            access_log=True,
            timeout_keep_alive=75,
            timeout_graceful_shutdown=30,
        )
    except KeyboardInterrupt:
        announce("\n⚠️  Shutting down due to keyboard interrupt")
        sys.exit(0)
    except Exception as e:
        sep = "=" * 60
        announce(f"\n{sep}\n❌ CRITICAL: Failed to start application\n{sep}", logging.ERROR)
        announce(f"Error: {e}", logging.ERROR)
        announce(f"Error type: {type(e).__name__}", logging.ERROR)
        announce(traceback.format_exc(), logging.ERROR)
        announce("Troubleshooting steps:", logging.ERROR)
        announce("1. Verify SECURITY_SECRET_KEY is >= 32 characters", logging.ERROR)
        announce("2. Verify the MongoDB connection string is correct", logging.ERROR)
        announce("3. Check the app binds to the expected port (default 0.0.0.0:8000)", logging.ERROR)
        sys.exit(1)
