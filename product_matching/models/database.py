"""
SQLAlchemy models for the taxonomy store.

products_taxonomy holds the curated (company, category, track) catalog used
for matching; products_information holds per-product exposure data keyed by
product number, as loaded from clearinghouse exports.
"""
import uuid

from sqlalchemy import JSON, Column, DateTime, Float, Index, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class ProductTaxonomyTable(Base):
    """Reference taxonomy of savings products and their exposures"""

    __tablename__ = "products_taxonomy"

    id = Column(String(36), primary_key=True, default=_new_id)
    company = Column(String(200), nullable=False, index=True)
    category = Column(String(200), nullable=False, index=True)
    sub_category = Column(String(300), nullable=False, default="")
    product_number = Column(String(50), index=True)

    # Percentages 0-100; NULL means not reported
    exposure_stocks = Column(Float)
    exposure_bonds = Column(Float)
    exposure_foreign_currency = Column(Float)
    exposure_foreign_investments = Column(Float)
    exposure_israel = Column(Float)
    exposure_illiquid_assets = Column(Float)
    asset_composition = Column(Text)

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("idx_products_taxonomy_company_category", "company", "category"),
    )

    def __repr__(self) -> str:
        return (
            f"<ProductTaxonomy(company='{self.company}', category='{self.category}', "
            f"sub_category='{self.sub_category}')>"
        )


class ProductInformationTable(Base):
    """Clearinghouse product information keyed by product number"""

    __tablename__ = "products_information"

    id = Column(String(36), primary_key=True, default=_new_id)
    product_number = Column(String(50), nullable=False, unique=True, index=True)
    track_name = Column(String(300), nullable=False, default="")
    company = Column(String(200), nullable=False, default="")
    product_type = Column(String(200), nullable=False, default="")

    # {"stocks": .., "bonds": .., "foreign_currency": .., "foreign_investments": ..,
    #  "israel": .., "illiquid_assets": ..}
    exposure_data = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<ProductInformation(product_number='{self.product_number}', company='{self.company}')>"
