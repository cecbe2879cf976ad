"""Shared pytest fixtures for sqlporter unit and integration tests."""
from __future__ import annotations

import sqlite3
from collections.abc import Iterator

import pytest

from sqlporter.schema.document import Document
from tests.fixtures import RecordingBackend, load_document

MUSIC_DDL = """
CREATE TABLE Artist (Id INTEGER PRIMARY KEY, Name TEXT);
CREATE TABLE track_info (TrackId INTEGER PRIMARY KEY AUTOINCREMENT, Flag TEXT, Note TEXT);
CREATE INDEX IFK_ArtistName ON Artist (Name);
CREATE TABLE cache__shadow (k, v);
INSERT INTO Artist VALUES (1, 'AC/DC');
INSERT INTO Artist VALUES (2, 'O''Brien');
INSERT INTO track_info (Flag, Note) VALUES ('true', 'null');
INSERT INTO track_info (Flag, Note) VALUES ('false', 'undefined');
INSERT INTO cache__shadow VALUES ('a', 'b');
"""


@pytest.fixture(scope="session")
def document() -> Document:
    """Canonical sample Document shared across all tests."""
    return load_document()


@pytest.fixture()
def recorder() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture()
def conn() -> Iterator[sqlite3.Connection]:
    """Empty in-memory database."""
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture()
def music_db(conn: sqlite3.Connection) -> sqlite3.Connection:
    """In-memory database with two user tables, an index, and reserved tables.

    ``track_info`` uses AUTOINCREMENT, so SQLite also creates
    ``sqlite_sequence``; ``cache__shadow`` carries the internal marker.
    """
    conn.executescript(MUSIC_DDL)
    conn.commit()
    return conn
