"""Brand audit reports for websites."""

__version__ = "0.3.0"

from .auditor import Auditor, generate_audit
from .compare import compare_audits

__all__ = ["Auditor", "generate_audit", "compare_audits", "__version__"]
