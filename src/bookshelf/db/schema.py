# ABOUTME: SQL DDL statements for the BookShelf library database schema.
# ABOUTME: Defines the catalog tables, junction tables, seed rows, and versioned migrations.

SCHEMA_V1 = """
CREATE TABLE authors (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    name       TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE INDEX idx_authors_name ON authors(name COLLATE NOCASE);

CREATE TABLE series (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    title      TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE INDEX idx_series_title ON series(title COLLATE NOCASE);

-- Reading statuses; key is stable even when the display name is renamed
CREATE TABLE statuses (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    name       TEXT NOT NULL,
    key        TEXT UNIQUE,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE formats (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

-- Core book catalog table
CREATE TABLE books (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    title          TEXT NOT NULL CHECK (length(trim(title)) > 0),
    isbn10         TEXT,
    isbn13         TEXT,
    goodreads_id   TEXT,
    asin           TEXT,
    status_id      INTEGER REFERENCES statuses(id) ON DELETE SET NULL,
    format_id      INTEGER REFERENCES formats(id) ON DELETE SET NULL,
    rating         REAL,
    start_date     TEXT,
    completed_date TEXT,
    release_date   TEXT,
    publish_year   INTEGER,
    page_count     INTEGER,
    publisher      TEXT,
    summary        TEXT,
    comments       TEXT,
    cover_url      TEXT,
    date_added     TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    date_modified  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE UNIQUE INDEX idx_books_isbn13 ON books(isbn13) WHERE isbn13 IS NOT NULL;
CREATE INDEX idx_books_isbn10 ON books(isbn10) WHERE isbn10 IS NOT NULL;
CREATE INDEX idx_books_goodreads_id ON books(goodreads_id) WHERE goodreads_id IS NOT NULL;
CREATE INDEX idx_books_asin ON books(asin) WHERE asin IS NOT NULL;

CREATE TABLE book_authors (
    book_id       INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    author_id     INTEGER NOT NULL REFERENCES authors(id) ON DELETE CASCADE,
    role          TEXT NOT NULL DEFAULT 'Author',
    is_primary    INTEGER NOT NULL DEFAULT 0,
    display_order INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (book_id, author_id)
);

CREATE TABLE book_series (
    book_id    INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    series_id  INTEGER NOT NULL REFERENCES series(id) ON DELETE CASCADE,
    book_num   REAL,
    is_primary INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (book_id, series_id)
);

INSERT INTO statuses (name, key, sort_order) VALUES
    ('Currently Reading', 'CURRENT', 1),
    ('To Read', 'NEXT', 2),
    ('Read', 'READ', 3),
    ('Did Not Finish', 'DNF', 4);

INSERT INTO formats (name) VALUES ('Hardcover'), ('Paperback'), ('Ebook'), ('Audiobook');

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""

# V2: narrators and genres, linked from books.
MIGRATION_V2 = """
CREATE TABLE IF NOT EXISTS narrators (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    name       TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_narrators_name ON narrators(name COLLATE NOCASE);

CREATE TABLE IF NOT EXISTS genres (
    id   INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE COLLATE NOCASE
);

ALTER TABLE books ADD COLUMN narrator_id INTEGER REFERENCES narrators(id) ON DELETE SET NULL;
ALTER TABLE books ADD COLUMN genre_id INTEGER REFERENCES genres(id) ON DELETE SET NULL;

INSERT INTO schema_version (version) VALUES (2);
"""

MIGRATIONS: list[tuple[int, str]] = [
    (2, MIGRATION_V2),
]
