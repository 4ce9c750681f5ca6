"""
Centralized AWS client factory with lazy initialization.

Reduces cold start overhead by deferring boto3 client creation
until first use. Handlers and scripts share the same pattern.
Regional clients are cached per region; None means the session default.
"""

_cloudwatch = None
_lambda = {}
_cognito = {}


def get_cloudwatch():
    """Get CloudWatch client, creating it lazily on first use."""
    global _cloudwatch
    if _cloudwatch is None:
        import boto3
        _cloudwatch = boto3.client("cloudwatch")
    return _cloudwatch


def get_lambda(region: str = None):
    """Get Lambda client for a region, creating it lazily on first use."""
    if region not in _lambda:
        import boto3
        _lambda[region] = boto3.client("lambda", region_name=region)
    return _lambda[region]


def get_cognito(region: str = None):
    """Get Cognito Identity Provider client for a region, creating it lazily on first use."""
    if region not in _cognito:
        import boto3
        _cognito[region] = boto3.client("cognito-idp", region_name=region)
    return _cognito[region]


def reset_clients():
    """Reset all cached clients. Used in tests for clean state."""
    global _cloudwatch
    _cloudwatch = None
    _lambda.clear()
    _cognito.clear()
