"""
Delivery Models
===============
Closed sets of delivery strategies and detected web servers.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class DeliveryMethod(str, Enum):
    """How a granted file reaches the client."""
    AUTO = "auto"
    APACHE = "x_sendfile"
    LITESPEED = "litespeed"
    NGINX = "x_accel_redirect"
    DIRECT = "php"

    @classmethod
    def parse(cls, value) -> "DeliveryMethod":
        """Map a stored setting to a method; unknown values mean AUTO."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        aliases = {
            "apache": cls.APACHE,
            "sendfile": cls.APACHE,
            "nginx": cls.NGINX,
            "direct": cls.DIRECT,
            "stream": cls.DIRECT,
        }
        if text in aliases:
            return aliases[text]
        for member in cls:
            if member.value == text:
                return member
        return cls.AUTO


class ServerSoftware(str, Enum):
    """Web server in front of the gate."""
    APACHE = "apache"
    LITESPEED = "litespeed"
    NGINX = "nginx"
    UNKNOWN = "unknown"


# Delivery headers, one per handoff strategy
X_SENDFILE = "X-Sendfile"
X_LITESPEED_LOCATION = "X-LiteSpeed-Location"
X_ACCEL_REDIRECT = "X-Accel-Redirect"


@dataclass
class DeliveryPlan:
    """Chosen strategy plus the header value it needs."""
    method: DeliveryMethod
    header_name: Optional[str] = None
    header_value: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def is_handoff(self) -> bool:
        return self.method is not DeliveryMethod.DIRECT


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte range inside a file of ``size`` bytes."""
    start: int
    end: int
    size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.size}"
