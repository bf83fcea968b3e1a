"""Utility functions package for the tokenrelay client.

Exposed functions:
    mask_token: Renders a credential safely for log output.
    join_url: Joins a base URL and a request path.
"""

from .helpers import join_url, mask_token

__all__ = ["join_url", "mask_token"]
