import io
import logging
import pathlib
import typing
from contextlib import contextmanager
from enum import StrEnum
from urllib.parse import urlparse
from urllib.request import url2pathname

from .errors import OfflineError
from .request_session import session

logger = logging.getLogger(__name__)


class Connectivity(StrEnum):
    """Whether network reads are permitted"""

    ONLINE = "online"
    OFFLINE = "offline"


def is_remote(location: str) -> bool:
    return location.startswith(("https://", "http://"))


def file_url_to_path(url: str) -> pathlib.Path:
    return pathlib.Path(url2pathname(urlparse(url).path))


@contextmanager
def open_file_or_url(
    path_or_url: str | pathlib.Path,
    connectivity: Connectivity = Connectivity.ONLINE,
) -> typing.Generator[io.TextIOBase, typing.Any, None]:
    location = str(path_or_url)
    if location.startswith("file://"):
        location = str(file_url_to_path(location))

    if is_remote(location):
        if connectivity == Connectivity.OFFLINE:
            raise OfflineError(f"Network access is disabled, cannot read {location}")
        logger.debug("reading %s over the network", location)
        try:
            response = session.get(location)
            response.raise_for_status()
        except Exception as e:
            raise OSError(f"Failed to read from URL {location}: {e}") from e
        yield io.StringIO(response.text)
    else:
        with open(location, "r", encoding="utf-8") as f:
            yield f
