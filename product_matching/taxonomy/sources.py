"""
Normalize clearinghouse asset-allocation rows into taxonomy rows.

The gemel (provident/study funds), pension and insurance exports all report
one line per (track, asset type). Tracks are grouped and their asset types
are folded into the six exposure percentages of a TaxonomyRow.
"""
from typing import Iterable, Optional

import structlog

from product_matching.models.domain import ClearinghouseAssetRow, SourceKind, TaxonomyRow

logger = structlog.get_logger(__name__)

PENSION_CATEGORY = "קרן פנסיה"
INSURANCE_CATEGORY = "ביטוח מנהלים"
STUDY_FUND_CATEGORY = "קרן השתלמות"
PROVIDENT_FUND_CATEGORY = "קופת גמל"

# Clearinghouse asset type codes
GOV_BONDS_MARKETABLE = "4701"
CORP_BONDS_MARKETABLE = "4703"
CORP_BONDS_NON_MARKETABLE = "4704"
STOCKS = "4705"
NON_MARKETABLE_ASSETS = "4722"
ISRAEL_ASSETS = "4731"
FOREIGN_ASSETS = "4732"

BOND_ASSET_TYPES = (GOV_BONDS_MARKETABLE, CORP_BONDS_MARKETABLE, CORP_BONDS_NON_MARKETABLE)

ASSET_TYPE_LABELS = {
    GOV_BONDS_MARKETABLE: "אג\"ח ממשלתיות סחירות",
    CORP_BONDS_MARKETABLE: "אג\"ח קונצרניות סחירות",
    CORP_BONDS_NON_MARKETABLE: "אג\"ח קונצרניות לא סחירות",
    STOCKS: "מניות",
    "4706": "פיקדונות",
    "4707": "הלוואות",
    "4708": "מזומנים",
    "4709": "קרנות נאמנות",
    "4711": "נכסים אחרים",
    "4721": "נכסים סחירים",
    NON_MARKETABLE_ASSETS: "נכסים לא סחירים",
    ISRAEL_ASSETS: "נכסים בארץ",
    FOREIGN_ASSETS: "נכסים בחו\"ל ומט\"ח",
}


def category_for(kind: SourceKind, track_name: str) -> str:
    """Product family of a clearinghouse track"""
    if kind == SourceKind.PENSION:
        return PENSION_CATEGORY
    if kind == SourceKind.INSURANCE:
        return INSURANCE_CATEGORY
    lowered = track_name.lower()
    if "השתלמות" in lowered or "hishtalmut" in lowered:
        return STUDY_FUND_CATEGORY
    return PROVIDENT_FUND_CATEGORY


def _bonds_average(percentages: dict[str, float]) -> Optional[float]:
    """Mean over all three bond types, unreported ones counted as 0"""
    if not any(code in percentages for code in BOND_ASSET_TYPES):
        return None
    return sum(percentages.get(code, 0.0) for code in BOND_ASSET_TYPES) / len(BOND_ASSET_TYPES)


def _composition_text(percentages: dict[str, float]) -> Optional[str]:
    parts = [
        f"{ASSET_TYPE_LABELS.get(code, code)}: {value:g}%"
        for code, value in sorted(percentages.items())
        if value
    ]
    return ", ".join(parts) or None


def _track_to_row(
    kind: SourceKind,
    track_number: str,
    company: str,
    track_name: str,
    percentages: dict[str, float],
) -> TaxonomyRow:
    foreign = percentages.get(FOREIGN_ASSETS)
    israel = percentages.get(ISRAEL_ASSETS)
    if israel is None and foreign is not None:
        israel = 100.0 - foreign

    return TaxonomyRow(
        company=company,
        category=category_for(kind, track_name),
        old_track_name=track_name,
        new_track_name=track_name,
        product_number=track_number,
        exposure_stocks=percentages.get(STOCKS),
        exposure_bonds=_bonds_average(percentages),
        exposure_foreign_investments=foreign,
        exposure_foreign_currency=foreign,
        exposure_israel=israel,
        exposure_illiquid_assets=percentages.get(NON_MARKETABLE_ASSETS),
        asset_composition=_composition_text(percentages),
    )


def build_taxonomy_rows(rows: Iterable[ClearinghouseAssetRow]) -> list[TaxonomyRow]:
    """
    Group asset lines by (kind, track number) and emit one TaxonomyRow each.

    Lines missing a track number, company or track name are skipped. Output
    order follows the first appearance of each track.
    """
    tracks: dict[tuple[SourceKind, str], dict] = {}
    skipped = 0

    for row in rows:
        if not row.track_number or not row.company or not row.track_name:
            skipped += 1
            continue

        key = (row.kind, row.track_number)
        track = tracks.setdefault(
            key,
            {
                "company": row.company,
                "track_name": row.track_name,
                "percentages": {},
            },
        )
        if row.asset_type_id:
            track["percentages"][row.asset_type_id] = row.percentage

    taxonomy_rows = [
        _track_to_row(kind, track_number, track["company"], track["track_name"], track["percentages"])
        for (kind, track_number), track in tracks.items()
    ]

    logger.info(
        "Clearinghouse rows normalized",
        tracks=len(taxonomy_rows),
        skipped_lines=skipped,
    )
    return taxonomy_rows
