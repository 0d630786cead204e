"""Process-wide application state and the FastAPI dependencies that hand it out."""

from __future__ import annotations

import logging
from datetime import date, datetime

import httpx
from fastapi import Request

from interview_desk.booking import BookingService
from interview_desk.calendar import hourly_slots
from interview_desk.config import Config, load_config
from interview_desk.dashboard import DashboardService
from interview_desk.directory import CandidateDirectory
from interview_desk.errors import ConfigurationError
from interview_desk.progress import ProgressService
from interview_desk.results import ResultsService
from interview_desk.session import SIGNED_OUT, SessionProvider
from interview_desk.store import SupabaseStore

log = logging.getLogger(__name__)


class DeskState:
    """Everything the routes share: config, the store client and the view-models.

    A bad configuration does not stop the app from starting; it is kept and
    re-raised by :meth:`require` so every protected view reports it.
    """

    def __init__(self, cfg: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.cfg = cfg
        self.config_error: ConfigurationError | None = None
        self.store: SupabaseStore | None = None
        try:
            self.store = SupabaseStore(cfg, transport=transport)
        except ConfigurationError as e:
            log.error("Configuration error: %s", e.message)
            self.config_error = e
            return

        tz = cfg.tz
        self.session = SessionProvider(self.store)
        self.directory = CandidateDirectory(self.store)
        self.booking = BookingService(
            self.store, tz, cfg.first_weekday, hourly_slots(cfg.slot_start_hour, cfg.slot_end_hour),
        )
        self.dashboard = DashboardService(self.store, tz)
        self.progress = ProgressService(self.store)
        self.results = ResultsService(self.store)
        self.session.subscribe(self._on_auth_change)

    def _on_auth_change(self, event: str, _session) -> None:
        if event == SIGNED_OUT:
            log.debug("Signed out, clearing the candidate directory")
            self.directory.clear()

    @classmethod
    def from_env(cls, env_file: str | None = None) -> DeskState:
        try:
            cfg = load_config(env_file)
        except ConfigurationError as e:
            state = cls(Config())
            state.config_error = e
            return state
        return cls(cfg)

    def require(self) -> DeskState:
        if self.config_error is not None:
            raise self.config_error
        return self

    def now(self) -> datetime:
        return datetime.now(self.cfg.tz)

    def today(self) -> date:
        return self.now().date()

    async def aclose(self) -> None:
        if self.store is not None:
            await self.store.aclose()


def get_state(request: Request) -> DeskState:
    return request.app.state.desk.require()
