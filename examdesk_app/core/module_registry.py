"""Table of the ExamDesk API modules and how each one is mounted.

A module is a package under ``examdesk_app.modules`` exposing a blueprint
and a ``module_metadata`` dict (name, url_prefix, enabled). Importing the
routes entry point attaches the views to the blueprint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from flask import Blueprint, Flask
from werkzeug.utils import import_string

API_PREFIX = '/api'


@dataclass(frozen=True)
class ModuleDefinition:
    package: str
    blueprint: str
    routes: str = 'routes'

    @property
    def routes_path(self) -> str:
        return f'{self.package}.{self.routes}' if self.routes else self.package

    def metadata(self) -> Dict[str, Any]:
        return dict(getattr(import_string(self.package), 'module_metadata', {}))

    def load_blueprint(self) -> Blueprint:
        entry = import_string(self.routes_path)
        blueprint = getattr(entry, self.blueprint, None)
        if not isinstance(blueprint, Blueprint):
            raise TypeError(f"{self.routes_path}.{self.blueprint} is not a Flask Blueprint: {blueprint!r}")
        return blueprint


def register_modules(app: Flask, modules: Iterable[ModuleDefinition]) -> Tuple[str, ...]:
    """Mount every enabled module; returns the names that were registered."""
    registered = []
    for module in modules:
        meta = module.metadata()
        name = meta.get('name', module.package.rsplit('.', 1)[-1])
        if not meta.get('enabled', True):
            app.logger.info(f"Module '{name}' is disabled, skipping")
            continue
        app.register_blueprint(module.load_blueprint(), url_prefix=meta.get('url_prefix', API_PREFIX))
        registered.append(name)
    app.logger.debug(f"Registered modules: {', '.join(registered)}")
    return tuple(registered)


def register_default_modules(app: Flask) -> Tuple[str, ...]:
    return register_modules(app, DEFAULT_MODULES)


DEFAULT_MODULES: Tuple[ModuleDefinition, ...] = (
    ModuleDefinition('examdesk_app.modules.system', 'system_bp', routes=''),
    ModuleDefinition('examdesk_app.modules.auth', 'auth_bp'),
    ModuleDefinition('examdesk_app.modules.user_management', 'user_management_bp'),
    ModuleDefinition('examdesk_app.modules.quiz', 'quiz_bp'),
    ModuleDefinition('examdesk_app.modules.results', 'results_bp'),
)
