"""CORS middleware configured from PaymentSettings.

Allowed origins are resolved when the first cross-origin request arrives,
after the lifespan has validated configuration. Requests without an Origin
header pass straight through.
"""

from typing import Any

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from chezvous.config import PaymentSettings, get_settings


class SettingsCORSMiddleware:
    """CORSMiddleware whose allow_origins come from settings.allowed_origins."""

    def __init__(self, app: ASGIApp, **options: Any) -> None:
        self.app = app
        self._options = options
        self._settings: PaymentSettings | None = None
        self._cors: CORSMiddleware | None = None

    def _middleware(self) -> CORSMiddleware:
        settings = get_settings()
        # Rebuilt when settings are reloaded
        if self._cors is None or settings is not self._settings:
            self._settings = settings
            self._cors = CORSMiddleware(
                self.app, allow_origins=settings.allowed_origins, **self._options
            )
        return self._cors

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or "origin" not in Headers(scope=scope):
            await self.app(scope, receive, send)
            return
        await self._middleware()(scope, receive, send)
