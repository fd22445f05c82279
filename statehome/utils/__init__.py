"""Utility modules for the state backend.

Modules:
    api_client: Authenticated Cloudflare v4 REST client
    logging_config: structlog setup
"""
