"""Registration handler.

Routes handled:
    POST /registration - sign up a new tenant and its first user
"""

from __future__ import annotations

import time
from typing import Any, Mapping

from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from onboarding.api.request import parse_model
from onboarding.exceptions import AppError
from onboarding.exceptions import ConfigurationError
from onboarding.models import Registration
from onboarding.services.registration import RegistrationService
from onboarding.utils.logging import configure_logging
from onboarding.utils.logging import get_logger
from onboarding.utils.logging import log_response
from onboarding.utils.logging import set_request_context
from onboarding.utils.responses import app_error_response
from onboarding.utils.responses import empty_response
from onboarding.utils.responses import error_response
from onboarding.utils.responses import json_response
from onboarding.utils.warmup import is_warmup

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    set_request_context(event, context)
    if is_warmup(event):
        logger.info("Warming up")
        return empty_response(200, event=event)

    start = time.perf_counter()
    response = _register(event)
    log_response(
        logger,
        "RegistrationService::register",
        response["statusCode"],
        (time.perf_counter() - start) * 1000,
    )
    return response


def _register(event: Mapping[str, Any]) -> dict[str, Any]:
    try:
        registration = parse_model(event, Registration)
        result = RegistrationService().register(registration)
    except ConfigurationError as exc:
        logger.error(f"Registration misconfigured: {exc.message}")
        return app_error_response(exc, event=event)
    except AppError as exc:
        logger.warning(f"Registration failed: {exc.message}")
        return error_response(400, exc.message, exc.detail, event=event)
    except (ClientError, BotoCoreError) as exc:
        logger.error("Registration failed calling AWS", exc_info=True)
        return error_response(400, str(exc), event=event)
    except Exception as exc:
        logger.error("Registration failed", exc_info=True)
        return error_response(400, str(exc), event=event)

    logger.info(
        "Registered tenant",
        extra={"tenant": result.tenant_id, "stack": result.stack_name},
    )
    return json_response(200, result.to_dict(), event=event)
