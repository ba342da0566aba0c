import contextlib
import contextvars
import logging
import typing

TERSE_LOG_FMT = "%(message)s"
VERBOSE_LOG_FMT = "%(levelname)s:%(name)s:%(lineno)d: %(message)s"

source_ctxvar: contextvars.ContextVar[str] = contextvars.ContextVar("source")


@contextlib.contextmanager
def source_ctxvar_context(source: object) -> typing.Generator[None, None, None]:
    """Context manager for source_ctxvar"""
    token = source_ctxvar.set(str(source))
    try:
        yield None
    finally:
        source_ctxvar.reset(token)


class SourceLogRecord(logging.LogRecord):
    """Logger record factory to add the requirement source from context var

    The class prepends f"{source}: " to every log message if-and-only-if
    ``source_ctxvar`` is set for the current context. The context var is set
    while a single requirement source is being read.

    ::
        with source_ctxvar_context(source):
            read_source(source)
    """

    def getMessage(self) -> str:  # noqa: N802
        msg = super().getMessage()
        try:
            source = source_ctxvar.get()
        except LookupError:
            return msg
        return f"{source}: {msg}"
