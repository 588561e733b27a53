"""BaseService — foundation for chainmig services.

Every service receives the frozen :class:`MigSettings` at construction
time and reads its tunables from there rather than from globals.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from chainmig.config.settings import MigSettings


class BaseService:
    """Base for service-layer classes.

    Usage::

        class MigrationService(BaseService):
            def apply(self, ...) -> ServiceResult:
                self._log.info("migrate.start", ...)
                ...
    """

    def __init__(self, settings: MigSettings) -> None:
        self._settings = settings
        self._log = structlog.get_logger(type(self).__module__).bind(service=type(self).__name__)
