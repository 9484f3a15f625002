"""kubegen — Kubernetes/Knative deployment scaffolding generator."""

__version__ = "0.1.0"
