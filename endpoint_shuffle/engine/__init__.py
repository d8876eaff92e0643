"""Engine components orchestrating scan → normalize → reconcile."""

from .normalizer import normalize, normalize_lines
from .reconciler import ReconcileReport, Reconciler
from .scanner import BaseScanSource, ShodanScanSource

__all__ = [
    "BaseScanSource",
    "ReconcileReport",
    "Reconciler",
    "ShodanScanSource",
    "normalize",
    "normalize_lines",
]
