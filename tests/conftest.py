import logging
import pathlib
import typing

import pytest
from click.testing import CliRunner

from reqspec import log

TESTDATA_PATH = pathlib.Path(__file__).parent.absolute() / "testdata"


@pytest.fixture
def testdata_path() -> typing.Generator[pathlib.Path, None, None]:
    yield TESTDATA_PATH


@pytest.fixture
def source_log_records() -> typing.Generator[None, None, None]:
    """Install the source log record factory for one test"""
    old_factory = logging.getLogRecordFactory()
    logging.setLogRecordFactory(log.SourceLogRecord)
    try:
        yield None
    finally:
        logging.setLogRecordFactory(old_factory)


@pytest.fixture
def cli_runner(
    tmp_path: pathlib.Path,
) -> typing.Generator[CliRunner, None, None]:
    """Click CLI runner"""
    runner = CliRunner()
    with runner.isolated_filesystem(temp_dir=tmp_path):
        yield runner
    # main() adds handlers bound to the runner's streams
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
    logging.setLogRecordFactory(logging.LogRecord)
