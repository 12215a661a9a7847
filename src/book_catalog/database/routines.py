"""
Server-side stored routines and the call templates that invoke them.

The business logic of every catalog action (existence checks, idempotent
creation, identifier quoting) lives in PL/pgSQL. The client only knows the
routine names, their positional arities and, for the search function, the
shape of the returned table.

Identifiers are quoted server-side with ``format('%I')`` / ``quote_ident`` and
values with ``%L`` / ``quote_literal``, so the routines are safe to call with
arbitrary text. Table names are resolved case-insensitively against the
existing schema by ``sp_resolve_table_name`` before they are quoted. On the
client side, call templates only ever contain placeholders ``:p1 ... :pn``;
values are always bound.

The script is split in two. ``DATABASE_ROUTINES_SQL`` holds the database
lifecycle routines, which are also installed on the maintenance catalog a
provisioning sub-session connects to. ``CATALOG_ROUTINES_SQL`` holds the
table, book and user routines.
"""

# Routines are declared with CREATE OR REPLACE so re-running the script on every
# bootstrap is a no-op for routines that already exist.
DATABASE_ROUTINES_SQL = r"""
CREATE EXTENSION IF NOT EXISTS dblink;

CREATE OR REPLACE PROCEDURE sp_create_database(p_dbname VARCHAR)
LANGUAGE plpgsql AS $$
BEGIN
    PERFORM dblink_exec(
        'host=localhost dbname=postgres user=' || current_user,
        'CREATE DATABASE ' || quote_ident(p_dbname)
    );
    RAISE NOTICE 'Database "%" created.', p_dbname;
END;
$$;

CREATE OR REPLACE PROCEDURE sp_drop_database(p_dbname VARCHAR)
LANGUAGE plpgsql AS $$
BEGIN
    PERFORM dblink_exec(
        'host=localhost dbname=postgres user=' || current_user,
        'DO $inner$
         BEGIN
           PERFORM pg_terminate_backend(pid)
           FROM pg_stat_activity
           WHERE datname = ' || quote_literal(p_dbname) || ' AND pid <> pg_backend_pid();
         END $inner$;'
    );
    PERFORM dblink_exec(
        'host=localhost dbname=postgres user=' || current_user,
        'DROP DATABASE IF EXISTS ' || quote_ident(p_dbname)
    );
    RAISE NOTICE 'Database "%" dropped.', p_dbname;
END;
$$;
"""

CATALOG_ROUTINES_SQL = r"""
CREATE OR REPLACE FUNCTION sp_resolve_table_name(p_tablename VARCHAR)
RETURNS VARCHAR
LANGUAGE sql STABLE AS $$
    SELECT table_name::VARCHAR
    FROM information_schema.tables
    WHERE table_schema = 'public'
      AND lower(table_name) = lower(p_tablename)
    ORDER BY table_name = p_tablename DESC
    LIMIT 1;
$$;

CREATE OR REPLACE PROCEDURE sp_create_table(p_tablename VARCHAR)
LANGUAGE plpgsql AS $$
BEGIN
    IF sp_resolve_table_name(p_tablename) IS NOT NULL THEN
        RAISE NOTICE 'Table "%" already exists.', p_tablename;
    ELSE
        EXECUTE format('CREATE TABLE %I (
            id SERIAL PRIMARY KEY,
            title VARCHAR(255),
            author VARCHAR(255),
            publisher VARCHAR(255),
            year INT
        )', p_tablename);
        RAISE NOTICE 'Table "%" created.', p_tablename;
    END IF;
END;
$$;

CREATE OR REPLACE PROCEDURE sp_clear_table(p_tablename VARCHAR)
LANGUAGE plpgsql AS $$
BEGIN
    EXECUTE format(
        'TRUNCATE TABLE %I',
        coalesce(sp_resolve_table_name(p_tablename), p_tablename)
    );
    RAISE NOTICE 'Table "%" cleared.', p_tablename;
END;
$$;

CREATE OR REPLACE PROCEDURE sp_add_book(
    p_tablename VARCHAR,
    p_title VARCHAR,
    p_author VARCHAR,
    p_publisher VARCHAR,
    p_year INT
)
LANGUAGE plpgsql AS $$
DECLARE
    v_id INT;
BEGIN
    EXECUTE format(
        'INSERT INTO %I (title, author, publisher, year) VALUES ($1, $2, $3, $4) RETURNING id',
        coalesce(sp_resolve_table_name(p_tablename), p_tablename)
    ) INTO v_id USING p_title, p_author, p_publisher, p_year;
    RAISE NOTICE 'Book added with id %: %', v_id, p_title;
END;
$$;

CREATE OR REPLACE FUNCTION sp_search_book_by_title(p_tablename VARCHAR, p_title VARCHAR)
RETURNS TABLE(
    id INT,
    title VARCHAR,
    author VARCHAR,
    publisher VARCHAR,
    year INT
)
LANGUAGE plpgsql SECURITY DEFINER AS $$
DECLARE
    v_name VARCHAR := sp_resolve_table_name(p_tablename);
BEGIN
    IF v_name IS NULL THEN
        RETURN;
    END IF;
    RETURN QUERY EXECUTE format(
        'SELECT id, title, author, publisher, year FROM %I WHERE strpos(lower(title), lower($1)) > 0 ORDER BY id',
        v_name
    ) USING p_title;
END;
$$;

CREATE OR REPLACE PROCEDURE sp_update_book(
    p_tablename VARCHAR,
    p_id INT,
    p_title VARCHAR,
    p_author VARCHAR,
    p_publisher VARCHAR,
    p_year INT
)
LANGUAGE plpgsql AS $$
BEGIN
    EXECUTE format(
        'UPDATE %I SET title = $1, author = $2, publisher = $3, year = $4 WHERE id = $5',
        coalesce(sp_resolve_table_name(p_tablename), p_tablename)
    ) USING p_title, p_author, p_publisher, p_year, p_id;
    RAISE NOTICE 'Book updated with id: %', p_id;
END;
$$;

CREATE OR REPLACE PROCEDURE sp_delete_book_by_title(p_tablename VARCHAR, p_title VARCHAR)
LANGUAGE plpgsql AS $$
BEGIN
    EXECUTE format(
        'DELETE FROM %I WHERE title = $1',
        coalesce(sp_resolve_table_name(p_tablename), p_tablename)
    ) USING p_title;
    RAISE NOTICE 'Book(s) with title "%" deleted.', p_title;
END;
$$;

CREATE OR REPLACE PROCEDURE sp_create_db_user(p_username VARCHAR, p_password VARCHAR, p_mode VARCHAR)
LANGUAGE plpgsql AS $$
BEGIN
    EXECUTE format('CREATE USER %I WITH PASSWORD %L', p_username, p_password);
    IF lower(p_mode) = 'admin' THEN
        EXECUTE format('ALTER USER %I WITH SUPERUSER', p_username);
    ELSE
        EXECUTE format('ALTER USER %I WITH NOSUPERUSER', p_username);
    END IF;
    RAISE NOTICE 'User "%" created with mode %.', p_username, p_mode;
END;
$$;
"""

ROUTINES_SQL = DATABASE_ROUTINES_SQL + CATALOG_ROUTINES_SQL

DATABASE_ROUTINE_NAMES = (
    "sp_create_database",
    "sp_drop_database",
)

# Names of everything ROUTINES_SQL declares, in declaration order
ROUTINE_NAMES = (
    *DATABASE_ROUTINE_NAMES,
    "sp_resolve_table_name",
    "sp_create_table",
    "sp_clear_table",
    "sp_add_book",
    "sp_search_book_by_title",
    "sp_update_book",
    "sp_delete_book_by_title",
    "sp_create_db_user",
)

# === Call Templates ===

CREATE_DATABASE = "CALL sp_create_database(:p1)"
DROP_DATABASE = "CALL sp_drop_database(:p1)"
CREATE_TABLE = "CALL sp_create_table(:p1)"
CLEAR_TABLE = "CALL sp_clear_table(:p1)"
ADD_BOOK = "CALL sp_add_book(:p1, :p2, :p3, :p4, :p5)"
SEARCH_BOOKS_BY_TITLE = "SELECT * FROM sp_search_book_by_title(:p1, :p2)"
UPDATE_BOOK = "CALL sp_update_book(:p1, :p2, :p3, :p4, :p5, :p6)"
DELETE_BOOK_BY_TITLE = "CALL sp_delete_book_by_title(:p1, :p2)"
CREATE_DB_USER = "CALL sp_create_db_user(:p1, :p2, :p3)"

# Lowers the message threshold for the session; bound like any other value
SET_CLIENT_MIN_MESSAGES = "SELECT set_config('client_min_messages', :p1, false)"

# Names shown in errors instead of the template text
OPERATION_NAMES = {
    CREATE_DATABASE: "creating database",
    DROP_DATABASE: "dropping database",
    CREATE_TABLE: "creating table",
    CLEAR_TABLE: "clearing table",
    ADD_BOOK: "adding book",
    SEARCH_BOOKS_BY_TITLE: "searching books",
    UPDATE_BOOK: "updating book",
    DELETE_BOOK_BY_TITLE: "deleting book",
    CREATE_DB_USER: "creating DB user",
    SET_CLIENT_MIN_MESSAGES: "setting client_min_messages",
}


def describe(template: str) -> str:
    """Readable name of the operation a template performs; the template itself if unknown."""
    return OPERATION_NAMES.get(template, template)
