"""
Deployed AWS resource checks.

Both checks are non-critical: a missing resource or an API error (no
credentials, access denied) is reported as a warning and never blocks
production readiness.
"""

import logging
import time
from dataclasses import dataclass

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import get_cognito, get_lambda
from .constants import COGNITO_LIST_PAGE_SIZE
from .logging_utils import log_external_call

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AwsCheckResult:
    name: str
    passed: bool
    detail: str

    def describe(self) -> str:
        return f"{self.name} - {self.detail}"

    def to_dict(self) -> dict:
        return {"name": self.name, "passed": self.passed, "detail": self.detail}


def _error_detail(e: Exception) -> str:
    if isinstance(e, ClientError):
        return e.response.get("Error", {}).get("Code", "ClientError")
    return str(e).split("\n")[0]


def check_lambda_functions(environment: str, region: str = None) -> AwsCheckResult:
    """Count Lambda functions whose name contains '<environment>-'."""
    name = "Lambda Functions"
    prefix = f"{environment}-"
    start = time.time()

    try:
        paginator = get_lambda(region).get_paginator("list_functions")
        functions = [
            fn["FunctionName"]
            for page in paginator.paginate()
            for fn in page.get("Functions", [])
            if prefix in fn["FunctionName"]
        ]
    except (ClientError, BotoCoreError) as e:
        log_external_call(logger, "lambda", "list_functions", False, (time.time() - start) * 1000, error=str(e))
        return AwsCheckResult(name, False, f"Unable to check ({_error_detail(e)})")

    log_external_call(logger, "lambda", "list_functions", True, (time.time() - start) * 1000)

    if functions:
        return AwsCheckResult(name, True, f"Found {len(functions)} functions")
    return AwsCheckResult(name, False, "No functions found (may not be deployed)")


def check_cognito_user_pools(name_filter: str, region: str = None) -> AwsCheckResult:
    """Look for Cognito user pools whose name contains name_filter."""
    name = "Cognito User Pool"
    start = time.time()

    try:
        response = get_cognito(region).list_user_pools(MaxResults=COGNITO_LIST_PAGE_SIZE)
    except (ClientError, BotoCoreError) as e:
        log_external_call(logger, "cognito-idp", "list_user_pools", False, (time.time() - start) * 1000, error=str(e))
        return AwsCheckResult(name, False, f"Unable to check ({_error_detail(e)})")

    log_external_call(logger, "cognito-idp", "list_user_pools", True, (time.time() - start) * 1000)

    pools = [p["Name"] for p in response.get("UserPools", []) if name_filter in p.get("Name", "")]
    if pools:
        return AwsCheckResult(name, True, f"Found: {', '.join(pools)}")
    return AwsCheckResult(name, False, "Not found (may not be deployed)")


def run_aws_checks(environment: str, region: str, cognito_filter: str) -> list[AwsCheckResult]:
    return [
        check_lambda_functions(environment, region),
        check_cognito_user_pools(cognito_filter, region),
    ]
