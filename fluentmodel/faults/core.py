"""
FluentModel Faults - core types.

A fault is an exception with a stable ``code``, a ``domain`` naming the
area it came from, a ``severity`` and a ``retryable`` flag. Domains set
the severity/retry defaults; a fault class may override them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Optional


class Severity(str, Enum):
    """How loudly a fault should be reported."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Named fault area. Open-ended: applications may create their own, e.g.
    ``FaultDomain("billing")``; unknown domains default to ERROR and not
    retryable.
    """

    CONFIG: ClassVar["FaultDomain"]
    MODEL: ClassVar["FaultDomain"]

    __slots__ = ("name", "description")

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description

    @property
    def value(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain({self.name!r})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return other.name == self.name
        return isinstance(other, str) and other == self.name

    def __hash__(self) -> int:
        return hash(self.name)


FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.MODEL = FaultDomain("model", "Record metadata, query building and execution")

# (severity, retryable) per domain
DOMAIN_DEFAULTS: dict[FaultDomain, tuple[Severity, bool]] = {
    FaultDomain.CONFIG: (Severity.FATAL, False),
    FaultDomain.MODEL: (Severity.ERROR, False),
}


class Fault(Exception):
    """
    Base for every error fluentmodel raises.

    ``code``, ``message`` and ``domain`` are required, either as arguments
    or as class attributes of a subclass. ``str(fault)`` reads
    ``[CODE] message``.

        raise Fault("USER_BANNED", "User 7 is banned", domain=FaultDomain("auth"))
    """

    code: Optional[str] = None
    message: Optional[str] = None
    domain: Optional[FaultDomain] = None

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        retryable: Optional[bool] = None,
        metadata: Optional[dict[str, Any]] = None,
    ):
        code = code or type(self).code
        message = message or type(self).message
        domain = domain or type(self).domain
        if not (code and message and domain):
            raise TypeError(f"{type(self).__name__} needs a code, a message and a domain")

        super().__init__(message)
        self.code = code
        self.message = message
        self.domain = domain

        default_severity, default_retryable = DOMAIN_DEFAULTS.get(domain, (Severity.ERROR, False))
        self.severity = severity if severity is not None else default_severity
        self.retryable = retryable if retryable is not None else default_retryable
        self.metadata: dict[str, Any] = dict(metadata or {})

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, domain={self.domain.name!r}, severity={self.severity.value!r})"

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for structured logs."""
        return {
            "code": self.code,
            "message": self.message,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "metadata": self.metadata,
        }
