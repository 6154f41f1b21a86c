"""Ordered startup steps run before the HTTP listener is bound.

Steps run in sequence inside an application context; the first failure
stops the sequence and is reported as a ``StartupError`` naming the step.
"""

from typing import Callable, NamedTuple

from flask import Flask, current_app
from sqlalchemy import text

from bootstrap import ensure_initial_admin
from config import validate_config
from extensions import db


class StartupStep(NamedTuple):
    name: str
    func: Callable[[], object]


class StartupError(RuntimeError):
    """A startup step failed; ``step`` names it and ``__cause__`` holds the error."""

    def __init__(self, step: str, error: BaseException) -> None:
        super().__init__(f"Startup step '{step}' failed: {error}")
        self.step = step
        self.error = error


def check_config() -> None:
    validate_config(current_app.config)


def connect_store() -> None:
    """Verify the database answers and make sure the schema exists."""
    db.session.execute(text("SELECT 1"))
    db.create_all()


DEFAULT_STEPS = (
    StartupStep("config", check_config),
    StartupStep("connect", connect_store),
    StartupStep("bootstrap", ensure_initial_admin),
)


def run_startup(app: Flask, steps=DEFAULT_STEPS) -> list[str]:
    """Run ``steps`` in order and return the names of those completed."""
    completed = []
    with app.app_context():
        for step in steps:
            try:
                step.func()
            except Exception as exc:
                raise StartupError(step.name, exc) from exc
            app.logger.debug("Startup step '%s' done", step.name)
            completed.append(step.name)
    return completed
