"""
Contact Message Service.

Public submission endpoint guarded by a fixed-window rate limiter and an
operator-only message log guarded by HTTP Basic authentication.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Depends, Request, Response
from fastapi.responses import FileResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.base_service import BaseService
from shared.config import ContactConfig
from shared.errors import PayloadTooLarge, StorageFailure, ValidationFailure

from .auth import AdminAuthenticator
from .ratelimit import FixedWindowRateLimiter, RateLimitMiddleware, get_client_address
from .store import MessageStore
from .validation import parse_submission

SUBMISSION_ACCEPTED = "Message received. Thank you!"
NOT_FOUND = "Not found"


class SiteStaticFiles(StaticFiles):
    """Static site that answers unknown paths with its index page."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404:
                raise

        index = Path(self.directory) / "index.html"
        if index.is_file():
            return FileResponse(index)
        return PlainTextResponse(NOT_FOUND, status_code=404)


class ContactService(BaseService):
    """Contact service implementation."""

    def __init__(self, config: Optional[ContactConfig] = None):
        super().__init__("contact", config)

        self.store = MessageStore(self.config.messages_file, metrics=self.metrics)
        self.store.initialize()

        self.rate_limiter = FixedWindowRateLimiter(
            window_ms=self.config.rate_limit_window_ms,
            max_requests=self.config.rate_limit_max,
        )
        self.rate_limit_middleware = RateLimitMiddleware(
            self.rate_limiter,
            trust_forwarded_for=self.config.trust_forwarded_for,
            metrics=self.metrics,
        )

        self.authenticator = AdminAuthenticator(
            self.config.admin_user,
            self.config.admin_pass,
            realm=self.config.admin_realm,
        )
        if not self.config.admin_configured:
            self.logger.warning(
                "Admin credentials not configured; message log reads will be refused",
                hint="set CONTACT_ADMIN_USER and CONTACT_ADMIN_PASS"
            )

        self._setup_contact_routes()
        self._mount_static_site()

        # Expose service instance via app state for introspection/testing
        self.app.state.contact_service = self

    def _setup_contact_routes(self):
        """Set up contact-specific routes."""

        @self.app.post("/api/contact")
        async def submit_contact(request: Request, response: Response):
            """Accept a visitor contact message."""
            rate_result = self.rate_limit_middleware.check_request(request)
            for header, value in RateLimitMiddleware.rate_limit_headers(rate_result).items():
                response.headers[header] = value

            try:
                submission = parse_submission(
                    await self._read_json_body(request),
                    max_message_length=self.config.max_message_length,
                )
            except (ValidationFailure, PayloadTooLarge) as e:
                e.headers.update(RateLimitMiddleware.rate_limit_headers(rate_result))
                self.metrics.increment_counter("contact_submissions_total", outcome="rejected")
                raise

            client_address = self._client_address(request)
            try:
                stored = await run_in_threadpool(self.store.append, submission, client_address)
            except StorageFailure:
                self.metrics.increment_counter("contact_submissions_total", outcome="error")
                raise

            self.metrics.increment_counter("contact_submissions_total", outcome="accepted")
            return {
                "ok": True,
                "message": SUBMISSION_ACCEPTED,
                "data": stored.to_document(),
            }

        @self.app.get("/api/messages")
        async def list_messages(admin: str = Depends(self.authenticator)):
            """Return the full message log, newest first."""
            try:
                messages = await run_in_threadpool(self.store.read_all)
            except StorageFailure:
                self.metrics.increment_counter("admin_reads_total", outcome="error")
                raise

            self.metrics.increment_counter("admin_reads_total", outcome="ok")
            self.metrics.set_gauge("stored_messages", len(messages))
            self.logger.info("Message log read", admin=admin, count=len(messages))
            return [message.to_document() for message in messages]

    def _mount_static_site(self):
        """Serve the front-end site, if present, behind the API routes."""
        static_dir = self.config.static_dir
        if not static_dir or not Path(static_dir).is_dir():

            @self.app.get("/{full_path:path}", include_in_schema=False)
            async def not_found(full_path: str):
                return PlainTextResponse(NOT_FOUND, status_code=404)

            return
        self.app.mount("/", SiteStaticFiles(directory=static_dir, html=True), name="site")
        self.logger.info("Serving static site", directory=static_dir)

    async def _read_json_body(self, request: Request) -> Any:
        limit = self.config.max_body_bytes
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                declared_length = int(declared)
            except ValueError as e:
                raise ValidationFailure("Invalid Content-Length header.") from e
            if declared_length > limit:
                raise PayloadTooLarge(limit)

        # Chunked bodies carry no length; stop reading once over the cap
        body = bytearray()
        async for chunk in request.stream():
            body.extend(chunk)
            if len(body) > limit:
                raise PayloadTooLarge(limit)

        if not body.strip():
            return {}
        try:
            return json.loads(bytes(body))
        except (ValueError, RecursionError) as e:
            # ValueError covers malformed JSON, bad UTF-8 and oversized integer literals
            raise ValidationFailure("Invalid JSON body.") from e

    def _client_address(self, request: Request) -> str:
        return get_client_address(request, self.config.trust_forwarded_for)

    async def _check_dependencies(self) -> Dict[str, Any]:
        count = await run_in_threadpool(self.store.count)
        return {"store": "ok", "stored_messages": count}


def create_app(config: Optional[ContactConfig] = None):
    """Create FastAPI application."""
    service = ContactService(config)
    return service.app


def main():
    service = ContactService()
    service.run()


if __name__ == "__main__":
    main()
