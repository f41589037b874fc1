"""
Taxonomy repository: reads reference taxonomy rows from the database or
from a JSON/CSV export of the products_taxonomy table.

Database errors degrade to an empty result so that matching falls back to
echoing the raw input; file errors raise TaxonomyLoadError.
"""
import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import pandas as pd
import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from product_matching.core.exceptions import TaxonomyLoadError
from product_matching.models.database import ProductInformationTable, ProductTaxonomyTable
from product_matching.models.domain import EXPOSURE_FIELDS, TaxonomyRow

logger = structlog.get_logger(__name__)

# products_information.exposure_data keys -> TaxonomyRow fields
INFORMATION_EXPOSURE_KEYS = {
    "stocks": "exposure_stocks",
    "bonds": "exposure_bonds",
    "foreign_currency": "exposure_foreign_currency",
    "foreign_investments": "exposure_foreign_investments",
    "israel": "exposure_israel",
    "illiquid_assets": "exposure_illiquid_assets",
}


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%")
        if not value:
            return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def row_from_record(record: dict) -> TaxonomyRow:
    """
    Map a products_taxonomy record (DB row or export line) to a TaxonomyRow.

    The table stores a single sub_category column; explicit old/new track
    name columns win when an export carries them.
    """
    sub_category = record.get("sub_category") or ""
    return TaxonomyRow(
        company=record.get("company"),
        category=record.get("category"),
        old_track_name=record.get("old_track_name") or sub_category,
        new_track_name=record.get("new_track_name") or sub_category,
        product_number=record.get("product_number"),
        asset_composition=record.get("asset_composition") or None,
        **{name: _optional_float(record.get(name)) for name in EXPOSURE_FIELDS},
    )


def load_rows_from_file(path: Union[str, Path]) -> List[TaxonomyRow]:
    """
    Read taxonomy rows from a JSON list or a CSV export.

    Raises:
        TaxonomyLoadError: If the file is missing, unsupported or malformed
    """
    path = Path(path)
    if not path.exists():
        raise TaxonomyLoadError("Taxonomy file not found", source_path=str(path))

    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            with open(path, encoding="utf-8") as f:
                records = json.load(f)
            if not isinstance(records, list):
                raise TaxonomyLoadError(
                    "Taxonomy JSON must be a list of rows", source_path=str(path)
                )
        elif suffix == ".csv":
            frame = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
            records = frame.to_dict(orient="records")
        else:
            raise TaxonomyLoadError(
                f"Unsupported taxonomy file type: {suffix}", source_path=str(path)
            )

        rows = [row_from_record(record) for record in records]

    except TaxonomyLoadError:
        raise
    except (OSError, ValueError, ValidationError, AttributeError) as e:
        logger.error("Failed to read taxonomy file", path=str(path), error=str(e))
        raise TaxonomyLoadError(
            f"Malformed taxonomy file: {e}", source_path=str(path), original_exception=e
        ) from e

    logger.info("Taxonomy file loaded", path=str(path), rows=len(rows))
    return rows


class TaxonomyRepository:
    """
    Repository for the products_taxonomy and products_information tables.

    Example:
        with Session(engine) as session:
            rows = TaxonomyRepository(session).load_rows()
    """

    def __init__(self, session: Session):
        """Initialize with database session"""
        self.session = session
        self.logger = logger.bind(component="TaxonomyRepository")

    def _convert_to_domain_model(self, db_row: ProductTaxonomyTable) -> TaxonomyRow:
        return row_from_record(
            {
                "company": db_row.company,
                "category": db_row.category,
                "sub_category": db_row.sub_category,
                "product_number": db_row.product_number,
                "asset_composition": db_row.asset_composition,
                **{name: getattr(db_row, name) for name in EXPOSURE_FIELDS},
            }
        )

    def load_rows(self) -> List[TaxonomyRow]:
        """All taxonomy rows ordered by company, category and sub-category"""
        try:
            db_rows = (
                self.session.query(ProductTaxonomyTable)
                .order_by(
                    ProductTaxonomyTable.company,
                    ProductTaxonomyTable.category,
                    ProductTaxonomyTable.sub_category,
                )
                .all()
            )
            rows = [self._convert_to_domain_model(db_row) for db_row in db_rows]

            self.logger.info("Loaded taxonomy rows", count=len(rows))
            return rows

        except SQLAlchemyError as e:
            self.logger.error("Database error loading taxonomy", error=str(e))
            return []

    def load_product_information(self) -> List[TaxonomyRow]:
        """
        Clearinghouse product information as taxonomy rows.

        product_type becomes the category and track_name both track names.
        """
        try:
            db_rows = (
                self.session.query(ProductInformationTable)
                .order_by(ProductInformationTable.company, ProductInformationTable.product_number)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error("Database error loading product information", error=str(e))
            return []

        rows = []
        for db_row in db_rows:
            exposure_data = db_row.exposure_data or {}
            rows.append(
                TaxonomyRow(
                    company=db_row.company,
                    category=db_row.product_type,
                    old_track_name=db_row.track_name,
                    new_track_name=db_row.track_name,
                    product_number=db_row.product_number,
                    **{
                        field: _optional_float(exposure_data.get(key))
                        for key, field in INFORMATION_EXPOSURE_KEYS.items()
                    },
                )
            )

        self.logger.info("Loaded product information", count=len(rows))
        return rows

    def upsert_rows(self, rows: Iterable[TaxonomyRow]) -> int:
        """
        Insert or update taxonomy rows by product number.

        Rows without a product number are always inserted. Returns the number
        of rows written; 0 if the transaction failed and was rolled back.
        """
        written = 0
        try:
            for row in rows:
                db_row = None
                if row.product_number:
                    db_row = (
                        self.session.query(ProductTaxonomyTable)
                        .filter(ProductTaxonomyTable.product_number == row.product_number)
                        .first()
                    )
                if db_row is None:
                    db_row = ProductTaxonomyTable()
                    self.session.add(db_row)

                db_row.company = row.company
                db_row.category = row.category
                db_row.sub_category = row.track_name
                db_row.product_number = row.product_number or None
                db_row.asset_composition = row.asset_composition
                for name in EXPOSURE_FIELDS:
                    setattr(db_row, name, getattr(row, name))
                written += 1

            self.session.commit()

        except SQLAlchemyError as e:
            self.session.rollback()
            self.logger.error("Database error writing taxonomy rows", error=str(e))
            return 0

        self.logger.info("Taxonomy rows written", count=written)
        return written
