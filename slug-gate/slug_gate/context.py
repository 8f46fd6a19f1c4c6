"""
Delivery Context
================
Per-request record handed from the pipeline to the dispatcher. Never persisted.
"""

from typing import Optional
from dataclasses import dataclass


@dataclass
class DeliveryContext:
    """Outcome of one gate evaluation."""
    requested_path: str
    requested_relative: str
    delivery_path: str
    delivery_relative: str
    delivery_content_type: Optional[str] = None
    is_variant: bool = False
    protected: bool = False
    path_id: Optional[str] = None
    authorized: bool = False
    status: int = 200
