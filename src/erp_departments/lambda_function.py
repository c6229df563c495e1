"""
ERP Departments Lambda Function - Entry point for the ERP department sync.

Delegates to the handler in member_services.handlers.
"""

import os
import sys
from typing import Any, Dict

# Add the member_services package to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from aws_lambda_powertools.utilities.typing import LambdaContext
from member_services.handlers.erp_departments_handler import lambda_handler as erp_departments_handler


def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return erp_departments_handler(event, context)
