"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the domain
service and the progress reporter into routes. The wired container is
created during app lifespan startup and stored in app.state.
"""

from fastapi import Request

from src.adapters.progress.console import ConsoleProgressReporter
from src.bootstrap import Container
from src.config.settings import Settings, get_settings
from src.domain.registration import RegistrationService

# Module-level singleton - ConsoleProgressReporter is stateless
_progress_reporter = ConsoleProgressReporter()


def get_container(request: Request) -> Container:
    """
    Get the wired container from app state.

    The container is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.container


def get_registration_service(request: Request) -> RegistrationService:
    """Get the registration service from the wired container."""
    return get_container(request).service


def get_progress_reporter() -> ConsoleProgressReporter:
    """Get console progress reporter (singleton)."""
    return _progress_reporter


def get_app_settings() -> Settings:
    """Settings dependency (overridable in tests)."""
    return get_settings()
