"""Submission pipeline: admission, rate limit, validation, challenge, dispatch."""

from __future__ import annotations

import time
import uuid
from collections.abc import Mapping
from typing import Any

from config import AppConfig
from models import ContactError, EndpointResponse, Rejection, ValidationOutcome
from services.admission import (
    AdmissionOptions,
    check_admission,
    client_ip,
    cors_headers,
    normalize_headers,
)
from services.challenge import ChallengeError, ChallengeVerifier, TurnstileVerifier
from services.observability import LogContext, StructuredLogger, get_logger
from services.rate_limiter import Clock, RateLimiter, RateLimitError, TTLCache
from services.sender import DispatchError, EmailSender, build_outbound_message, build_sender
from services.validator import ValidationOptions, parse_submission, validate_submission


def admission_options(config: AppConfig) -> AdmissionOptions:
    return AdmissionOptions(
        allowed_origins=config.allowed_origins,
        default_origin=config.default_origin,
        max_content_length=config.max_content_length,
        preview_origin_suffix=config.preview_origin_suffix,
    )


def validation_options(config: AppConfig) -> ValidationOptions:
    return ValidationOptions(
        name_min_length=config.name_min_length,
        name_max_length=config.name_max_length,
        email_max_length=config.email_max_length,
        message_max_length=config.message_max_length,
        max_links=config.max_links,
        honeypot_field=config.honeypot_field,
        challenge_token_field=config.challenge_token_field,
    )


class SubmissionGuard:
    """Run one contact request through every check before a single send.

    Stages run strictly in order and any failure ends the request. The only
    state shared between requests lives in the rate limiter's cache.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        rate_limiter: RateLimiter,
        verifier: ChallengeVerifier,
        sender: EmailSender,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._config = config
        self._rate_limiter = rate_limiter
        self._verifier = verifier
        self._sender = sender
        self._logger = logger or get_logger()
        self._admission_options = admission_options(config)
        self._validation_options = validation_options(config)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        cache: TTLCache,
        clock: Clock = time.time,
    ) -> SubmissionGuard:
        """Wire default collaborators from configuration."""
        return cls(
            config,
            rate_limiter=RateLimiter(
                cache,
                max_requests=config.rate_limit_max_requests,
                window_seconds=config.rate_limit_window_seconds,
                clock=clock,
            ),
            verifier=TurnstileVerifier(
                config.turnstile_secret_key,
                verify_url=config.turnstile_verify_url,
                timeout_seconds=config.outbound_timeout_seconds,
            ),
            sender=build_sender(config),
        )

    def handle(
        self,
        *,
        method: str,
        headers: Mapping[str, str] | None,
        raw_body: str,
    ) -> EndpointResponse:
        """Process one request; never raises."""
        request_headers = normalize_headers(headers)
        cors = cors_headers(request_headers.get("origin", ""), self._admission_options)
        context = LogContext(
            request_id=uuid.uuid4().hex,
            client_ip=client_ip(request_headers),
            origin=request_headers.get("origin") or None,
        )

        try:
            return self._run(
                method=method,
                headers=request_headers,
                raw_body=raw_body,
                cors=cors,
                context=context,
            )
        except DispatchError as exc:
            # Provider detail stays in server logs only.
            self._logger.error("contact.dispatch_failed", context=context, error=str(exc))
            return _error_response(Rejection(status_code=exc.status_code, reason="Email error"), cors)
        except ContactError as exc:
            self._logger.info(
                "contact.rejected",
                context=context,
                status_code=exc.status_code,
                reason=exc.reason,
                stage=type(exc).__name__,
            )
            return _error_response(exc.to_rejection(), cors)
        except Exception as exc:  # noqa: BLE001
            self._logger.error(
                "contact.unhandled_error",
                context=context,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return _error_response(Rejection(status_code=500, reason="Error"), cors)

    def _run(
        self,
        *,
        method: str,
        headers: dict[str, str],
        raw_body: str,
        cors: dict[str, str],
        context: LogContext,
    ) -> EndpointResponse:
        is_preflight = check_admission(
            method=method,
            headers=headers,
            body_size=len(raw_body.encode("utf-8")),
            options=self._admission_options,
        )
        if is_preflight:
            return EndpointResponse(status_code=204, headers=dict(cors), body=None)

        client_key = context.client_ip or ""
        if not self._rate_limiter.check_and_increment(client_key):
            raise RateLimitError("Too many requests")

        submission = parse_submission(raw_body, self._validation_options)
        result = validate_submission(submission, self._validation_options)
        if result.outcome == ValidationOutcome.HONEYPOT:
            self._logger.info("contact.honeypot", context=context)
            return _ok_response(cors)
        if result.rejection is not None:
            self._log_rejection(result.rejection, context, stage="ValidationError")
            return _error_response(result.rejection, cors)

        if self._config.challenge_enabled:
            token = (submission.challenge_token or "").strip()
            if not token:
                raise ChallengeError("Missing captcha", status_code=400)
            if not self._verifier.verify(token, client_key):
                if self._config.deceive_on_challenge_failure:
                    self._logger.info("contact.challenge_failed", context=context, deceived=True)
                    return _ok_response(cors)
                raise ChallengeError("Captcha failed")

        outbound = build_outbound_message(submission, self._config)
        message_id = self._sender.send(outbound)
        self._logger.info("contact.sent", context=context, message_id=message_id)
        return _ok_response(cors)

    def _log_rejection(self, rejection: Rejection, context: LogContext, *, stage: str) -> None:
        self._logger.info(
            "contact.rejected",
            context=context,
            status_code=rejection.status_code,
            reason=rejection.reason,
            stage=stage,
        )


def _json_headers(cors: dict[str, str]) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        **cors,
    }


def _ok_response(cors: dict[str, str]) -> EndpointResponse:
    return EndpointResponse(status_code=200, headers=_json_headers(cors), body={"ok": True})


def _error_response(rejection: Rejection, cors: dict[str, str]) -> EndpointResponse:
    body: dict[str, Any] = {"ok": False, "error": rejection.reason}
    return EndpointResponse(status_code=rejection.status_code, headers=_json_headers(cors), body=body)
