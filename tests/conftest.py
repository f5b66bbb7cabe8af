"""
Shared test fixtures and configuration.
"""

import logging
import textwrap
from pathlib import Path

import pytest

from bbmigrate.adapters.mock import MockForum
from bbmigrate.core.services.post_processor import PostProcessor
from bbmigrate.core.services.quote_refs import QuoteReferenceTable

FORUM_URL = "http://forum.test"


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """CLI invocations reconfigure the root logger; undo that per test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def quote_table() -> QuoteReferenceTable:
    """A table that resolves legacy pid 42."""
    return QuoteReferenceTable({"42": "post:7, topic:3"})


@pytest.fixture
def processor(quote_table: QuoteReferenceTable) -> PostProcessor:
    return PostProcessor.with_table(quote_table)


@pytest.fixture
def forum() -> MockForum:
    return MockForum()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a bbmigrate.yml with a quote map next to it."""
    (tmp_path / "post_id_mapping.json").write_text('{"42": "post:7, topic:3"}')
    content = textwrap.dedent(f"""\
        forum:
          url: {FORUM_URL}/
          api_key: secret
          api_username: system
        quote_map: post_id_mapping.json
        legacy_domain: forum.example.org
    """)
    path = tmp_path / "bbmigrate.yml"
    path.write_text(content)
    return path
