"""Sign-in handler.

Routes handled:
    POST /auth - exchange a username and password for Cognito tokens
"""

from __future__ import annotations

import time
from typing import Any, Mapping

from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from onboarding.api.request import parse_model
from onboarding.exceptions import AuthenticationError
from onboarding.exceptions import ValidationError
from onboarding.models import AuthenticationResult
from onboarding.models import SignInRequest
from onboarding.services import cognito
from onboarding.utils.logging import configure_logging
from onboarding.utils.logging import get_logger
from onboarding.utils.logging import hash_for_correlation
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
    """Authenticate a user against the pool that holds their username."""
    set_request_context(event, context)
    if is_warmup(event):
        logger.info("Warming up")
        return empty_response(200, event=event)

    start = time.perf_counter()
    response = _authenticate(event)
    log_response(
        logger,
        "AuthService::signin",
        response["statusCode"],
        (time.perf_counter() - start) * 1000,
    )
    return response


def _authenticate(event: Mapping[str, Any]) -> dict[str, Any]:
    try:
        credentials = parse_model(event, SignInRequest)
        logger.info(
            "Sign-in attempt",
            extra={"user": hash_for_correlation(credentials.username)},
        )
        user_pool_id = _find_user_pool(credentials.username)
        client_id = cognito.first_app_client(user_pool_id)
        if not client_id:
            logger.warning(f"No app client in user pool {user_pool_id}")
            raise AuthenticationError()

        result = cognito.admin_authenticate(
            user_pool_id,
            client_id,
            credentials.username,
            credentials.password,
        )
    except (ValidationError, AuthenticationError) as exc:
        return app_error_response(exc, event=event)
    except ClientError as exc:
        message = exc.response.get("Error", {}).get("Message") or str(exc)
        logger.warning(f"Cognito rejected sign-in: {message}")
        return error_response(401, message, event=event)
    except BotoCoreError as exc:
        logger.warning(f"Cognito unreachable during sign-in: {exc}")
        return error_response(401, str(exc), event=event)
    except Exception:
        logger.exception("Unexpected error during sign-in")
        return error_response(500, "Internal server error", event=event)

    challenge = result.get("ChallengeName")
    if challenge:
        logger.info(f"Sign-in challenge {challenge}")
        return error_response(401, challenge, event=event)

    tokens = AuthenticationResult.from_cognito(result.get("AuthenticationResult") or {})
    return json_response(200, tokens, event=event)


def _find_user_pool(username: str) -> str:
    pools = cognito.find_user_pools(username)
    if not pools:
        raise AuthenticationError()
    if len(pools) > 1:
        logger.warning(
            "Username exists in more than one user pool, using the first",
            extra={"pools": pools},
        )
    return pools[0]
