"""Core data structures for lbverify."""

from lbverify.models.config import LBVerifyConfig
from lbverify.models.exposure import (
    EXPOSURE_KIND,
    EXPOSURE_NAME,
    ConvergenceEvent,
    ConvergenceOutcome,
    EndpointSnapshot,
    EndpointSubset,
    ExposureRecord,
    ExposureRequest,
    IngressAddress,
    LoadBalancerEventReason,
    PortMapping,
    SessionAffinity,
    TransportProtocol,
)

__all__ = [
    "EXPOSURE_KIND",
    "EXPOSURE_NAME",
    "ConvergenceEvent",
    "ConvergenceOutcome",
    "EndpointSnapshot",
    "EndpointSubset",
    "ExposureRecord",
    "ExposureRequest",
    "IngressAddress",
    "LBVerifyConfig",
    "LoadBalancerEventReason",
    "PortMapping",
    "SessionAffinity",
    "TransportProtocol",
]
