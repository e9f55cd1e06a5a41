from __future__ import annotations

import csv
import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Iterable, List, Optional

import duckdb

from ..schemas.chat import CourseMaterial


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterialFilter:
    year: Optional[str] = None
    semester: Optional[str] = None
    subject: Optional[str] = None
    unit: Optional[str] = None


class MaterialCatalog:
    """Course-material catalog stored in DuckDB.

    Each record describes one upload (year, semester, subject, regulation, units)
    together with the file names it carries. Lookups return records in
    registration order so locator order is stable.
    """

    def __init__(self, connection: duckdb.DuckDBPyConnection, uploads_base_url: str) -> None:
        self._connection = connection.cursor()
        self.uploads_base_url = uploads_base_url.rstrip("/")
        self._lock = Lock()
        self._create_schema()

    def _create_schema(self) -> None:
        with self._lock:
            self._connection.execute("CREATE SEQUENCE IF NOT EXISTS course_material_seq")
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS course_materials (
                    seq BIGINT DEFAULT nextval('course_material_seq'),
                    id VARCHAR PRIMARY KEY,
                    year VARCHAR NOT NULL,
                    semester VARCHAR NOT NULL,
                    subject VARCHAR NOT NULL,
                    regulation VARCHAR,
                    units VARCHAR,
                    files VARCHAR NOT NULL
                )
                """
            )

    def register(self, material: CourseMaterial) -> CourseMaterial:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO course_materials (id, year, semester, subject, regulation, units, files)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    material.id,
                    material.year,
                    material.semester,
                    material.subject,
                    material.regulation,
                    material.units,
                    json.dumps(material.files),
                ],
            )
        return material

    def load_manifest(self, path: Path) -> int:
        """Register every row of a CSV manifest. Returns the number of rows loaded."""
        if not path.exists():
            LOGGER.warning("Catalog manifest %s does not exist. Skipping.", path)
            return 0
        loaded = 0
        with path.open("r", encoding="utf-8", newline="") as handle:
            for row in csv.DictReader(handle):
                files = [name.strip() for name in (row.get("files") or "").split(";") if name.strip()]
                self.register(
                    CourseMaterial(
                        id=(row.get("id") or "").strip() or uuid.uuid4().hex,
                        year=(row.get("year") or "").strip(),
                        semester=(row.get("semester") or "").strip(),
                        subject=(row.get("subject") or "").strip(),
                        regulation=(row.get("regulation") or "").strip(),
                        units=(row.get("units") or "").strip(),
                        files=files,
                    )
                )
                loaded += 1
        LOGGER.info("Loaded %d course materials from %s", loaded, path)
        return loaded

    def find_documents(self, material_filter: MaterialFilter) -> List[CourseMaterial]:
        clauses: List[str] = []
        params: List[str] = []
        for column, value in (
            ("year", material_filter.year),
            ("semester", material_filter.semester),
            ("subject", material_filter.subject),
            ("units", material_filter.unit),
        ):
            if value:
                clauses.append(f"{column} = ?")
                params.append(value)
        query = "SELECT id, year, semester, subject, regulation, units, files FROM course_materials"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY seq"
        with self._lock:
            rows = self._connection.execute(query, params).fetchall()
        return [
            CourseMaterial(
                id=row[0],
                year=row[1],
                semester=row[2],
                subject=row[3],
                regulation=row[4] or "",
                units=row[5] or "",
                files=json.loads(row[6]),
            )
            for row in rows
        ]

    def locator_for(self, file_name: str) -> str:
        return f"{self.uploads_base_url}/{file_name}"

    def locators(self, materials: Iterable[CourseMaterial]) -> List[str]:
        return [self.locator_for(file_name) for material in materials for file_name in material.files]
