import sqlite3
from pathlib import Path

from config import DB_PATH


def get_connection():
    db_file = Path(DB_PATH)
    db_file.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_file))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def create_tables(conn):
    cursor = conn.cursor()

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS Patient (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS Doctor (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            specialization TEXT NOT NULL,
            hospital TEXT,
            created_at TEXT NOT NULL
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS DoctorPatientLink (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            doctor_id INTEGER NOT NULL,
            patient_id INTEGER NOT NULL,
            status TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY (doctor_id) REFERENCES Doctor (id),
            FOREIGN KEY (patient_id) REFERENCES Patient (id)
        )
        """
    )

    cursor.execute(
        """
        CREATE TABLE IF NOT EXISTS HealthRecord (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            patient_id INTEGER NOT NULL,
            overall_score INTEGER NOT NULL,
            bmi_value REAL NOT NULL,
            bmi_category TEXT NOT NULL,
            data TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY (patient_id) REFERENCES Patient (id)
        )
        """
    )

    cursor.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_health_record_patient
        ON HealthRecord (patient_id, created_at)
        """
    )

    conn.commit()


def _add_column_if_missing(conn, table_name, column_name, column_ddl):
    cursor = conn.cursor()
    cursor.execute(f"PRAGMA table_info({table_name})")
    rows = [dict(row) for row in cursor.fetchall()]
    existing_columns = {row["name"] for row in rows}

    if column_name not in existing_columns:
        cursor.execute(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {column_ddl}")


def migrate_schema(conn):
    # Safe, additive migrations only.
    _add_column_if_missing(conn, "Patient", "latest_health_record_id", "INTEGER")
    _add_column_if_missing(conn, "HealthRecord", "category_scores", "TEXT NOT NULL DEFAULT '{}'")
    _add_column_if_missing(conn, "HealthRecord", "preview_score", "INTEGER")

    conn.commit()


def init_db():
    conn = get_connection()
    create_tables(conn)
    migrate_schema(conn)
    conn.close()
