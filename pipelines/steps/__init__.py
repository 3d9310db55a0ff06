# Namespace for pipeline steps
from .wait_for_content import WaitForContent  # noqa: F401
from .begin_progress import BeginProgress  # noqa: F401
from .load_items import LoadItems  # noqa: F401
from .extract_persist import ExtractAndPersist  # noqa: F401
from .finish_run import FinishRun  # noqa: F401
