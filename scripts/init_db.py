from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from config import get_settings_module

from volunteer_tracker.database.bootstrap import apply_schema, list_tables
from volunteer_tracker.database.connection import DBConfig

logger = logging.getLogger("volunteer_tracker.scripts.init_db")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = Path(__file__).resolve().parents[1] / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    tables = list_tables(db_config)
    logger.info("applied schema.sql -> %s (tables=%s)", DBConfig.from_mapping(db_config).describe(), len(tables))


if __name__ == "__main__":
    main()
