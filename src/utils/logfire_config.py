"""
Centralized Logfire configuration for the Slide Deck Generator.
"""
import io
import os
import sys

import logfire

_configured = False


def configure_logfire(force: bool = False) -> bool:
    """
    Configure Logfire with proper error handling.

    Args:
        force: Force reconfiguration even if already configured

    Returns:
        bool: True if successfully configured
    """
    global _configured

    if _configured and not force:
        return True

    token = os.getenv("LOGFIRE_TOKEN")
    if not token:
        # Silently disable if no token
        return False

    try:
        # Suppress the project URL output by redirecting stdout and stderr temporarily
        old_stdout = sys.stdout
        old_stderr = sys.stderr
        sys.stdout = io.StringIO()
        sys.stderr = io.StringIO()
        try:
            logfire.configure(
                token=token,
                service_name="slide-deck-generator",
                service_version=os.getenv("APP_VERSION", "dev"),
                console=False
            )
        finally:
            sys.stdout = old_stdout
            sys.stderr = old_stderr

        logfire.info("Logfire configured successfully")
        _configured = True
        return True

    except Exception as e:
        print(f"ERROR: Logfire configuration failed: {e}")
        _configured = False
        return False


def is_configured() -> bool:
    """Check if Logfire is configured."""
    return _configured


def instrument_fastapi(app) -> bool:
    """Instrument a FastAPI app if Logfire is configured."""
    if not is_configured():
        return False

    try:
        logfire.instrument_fastapi(app)
        logfire.info("FastAPI instrumentation enabled")
        return True
    except Exception as e:
        logfire.error(f"Failed to instrument FastAPI: {e}")
        return False
