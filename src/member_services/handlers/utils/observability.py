"""
Logger, tracer and metrics shared by every member services function.

All functions report under one service name and metrics namespace, so one
dashboard covers the integrations; the function itself is a metric dimension
and a trace annotation set by :func:`record_invocation`.
"""

import os

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics, MetricUnit
from aws_lambda_powertools.tracing import Tracer

# POWERTOOLS_SERVICE_NAME and POWERTOOLS_METRICS_NAMESPACE override these per deployment
SERVICE_NAME = os.getenv('POWERTOOLS_SERVICE_NAME', 'member-services')
METRICS_NAMESPACE = os.getenv('POWERTOOLS_METRICS_NAMESPACE', 'MemberServices')

# dev, test or prod; separates the stages in one namespace
DEPLOYMENT_STAGE = os.getenv('STAGE', 'prod')

logger: Logger = Logger(service=SERVICE_NAME)

# Disabled by setting POWERTOOLS_TRACE_DISABLED to "True"
tracer: Tracer = Tracer(service=SERVICE_NAME)

metrics = Metrics(namespace=METRICS_NAMESPACE, service=SERVICE_NAME)
metrics.set_default_dimensions(stage=DEPLOYMENT_STAGE)


def record_invocation(function_name: str) -> None:
    """Count the request and tag this invocation's metrics and trace with the function name."""
    tracer.put_annotation('service', function_name)
    metrics.add_dimension(name='function', value=function_name)
    metrics.add_metric(name='RequestCount', unit=MetricUnit.Count, value=1)
