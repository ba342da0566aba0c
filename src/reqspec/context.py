import logging
import pathlib

from .read import Connectivity
from .settings import Settings

logger = logging.getLogger(__name__)


class ReadContext:
    """Settings shared by all commands of one invocation"""

    def __init__(
        self,
        settings: Settings | None = None,
        connectivity: Connectivity | None = None,
        working_dir: pathlib.Path | None = None,
    ):
        self.settings = settings or Settings()
        self.connectivity = connectivity or self.settings.connectivity
        self.working_dir = (working_dir or pathlib.Path.cwd()).absolute()

    def __repr__(self) -> str:
        return (
            f"<ReadContext connectivity={self.connectivity} "
            f"working_dir={self.working_dir}>"
        )
