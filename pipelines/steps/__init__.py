# Namespace for pipeline steps
from .download_document import DownloadDocument  # noqa: F401
from .extract_profile import ExtractProfile  # noqa: F401
from .reconcile_profile import ReconcileProfile  # noqa: F401
from .apply_profile import ApplyProfileUpdate  # noqa: F401
