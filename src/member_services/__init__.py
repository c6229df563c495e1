"""
Member services Lambda functions.

This package follows the three-layer architecture used across the functions:

- handlers: API Gateway entry points, request parsing and response shaping
- logic: business rules and orchestration of remote calls
- clients / erp: adapters for the external systems
- models: request, response and domain schemas
"""
