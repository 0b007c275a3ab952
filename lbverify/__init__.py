"""lbverify: convergence verification for Kubernetes LoadBalancer services."""

__version__ = "0.1.0"
