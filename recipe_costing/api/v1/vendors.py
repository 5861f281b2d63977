import logging
from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import text
from typing import Dict, List, Optional

from recipe_costing import repository
from recipe_costing.config import settings
from recipe_costing.database import get_db
from recipe_costing.dependencies import get_today
from recipe_costing.exceptions import InputError, IntegrityError
from recipe_costing.api.v1.ingredients import ingredient_out
from recipe_costing.schemas.vendor import (
    VendorCreate,
    VendorUpdate,
    VendorResponse,
    VendorDetailResponse,
    VendorDeleteResponse
)
from recipe_costing.services import costing, reports

logger = logging.getLogger(__name__)

router = APIRouter()


def _ingredient_count(db: Session, vendor_id: int) -> int:
    return db.execute(
        text("SELECT COUNT(*) as count FROM ingredients WHERE vendor_id = :vendor_id"),
        {"vendor_id": vendor_id}
    ).fetchone().count


def _check_name_free(db: Session, name: str, vendor_id: Optional[int] = None):
    query = "SELECT id FROM vendors WHERE LOWER(name) = LOWER(:name)"
    params = {"name": name}
    if vendor_id is not None:
        query += " AND id != :vendor_id"
        params["vendor_id"] = vendor_id

    if db.execute(text(query), params).fetchone():
        raise IntegrityError(
            f"Vendor name '{name}' already exists",
            field="name",
            entity="Vendor",
            entity_id=vendor_id
        )


@router.get("/", response_model=List[VendorResponse])
def get_all_vendors(
    db: Session = Depends(get_db)
):
    """Get all active vendors with their ingredient count"""

    results = db.execute(
        text("""
            SELECT v.id, v.name, v.address, v.phone, v.is_active,
                   v.created_at, v.updated_at,
                   COUNT(i.id) as ingredient_count
            FROM vendors v
            LEFT JOIN ingredients i ON i.vendor_id = v.id
            WHERE v.is_active = :active
            GROUP BY v.id, v.name, v.address, v.phone, v.is_active, v.created_at, v.updated_at
            ORDER BY v.name ASC
        """),
        {"active": True}
    ).fetchall()

    return [repository.as_dict(r) for r in results]


@router.get("/reports/price-comparison")
def get_price_comparison(
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
) -> Dict[str, List[dict]]:
    """
    Compare what each active vendor charges for the same ingredient.
    Rows are cheapest first; prices not checked for PRICE_STALE_DAYS are Outdated.
    """

    comparison = reports.vendor_cost_comparison(
        repository.fetch_ingredients(db),
        repository.fetch_vendors(db, active_only=True),
        today,
        settings.PRICE_STALE_DAYS
    )

    return {
        name: [
            {
                **row,
                "cost_per_unit": costing.to_money(row["cost_per_unit"]),
                "base_cost": round(row["base_cost"], 4),
            }
            for row in rows
        ]
        for name, rows in comparison.items()
    }


@router.get("/{vendor_id}", response_model=VendorDetailResponse)
def get_vendor_by_id(
    vendor_id: int,
    db: Session = Depends(get_db),
    today: date = Depends(get_today)
):
    """Get active vendor with its ingredients"""

    vendor = repository.fetch_vendor(db, vendor_id, active_only=True)

    ingredients = db.execute(
        text(f"""
            SELECT {repository.INGREDIENT_COLUMNS}
            FROM ingredients i
            WHERE i.vendor_id = :vendor_id
            ORDER BY i.name ASC
        """),
        {"vendor_id": vendor_id}
    ).fetchall()

    return {
        **vendor,
        "ingredient_count": len(ingredients),
        "ingredients": [
            ingredient_out({**repository.as_dict(r), "vendor_name": vendor["name"]}, today)
            for r in ingredients
        ]
    }


@router.post("/", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
def create_vendor(
    data: VendorCreate,
    db: Session = Depends(get_db)
):
    """Create new vendor"""

    name = data.name
    _check_name_free(db, name)

    with repository.transaction(db, f"Vendor name '{name}' already exists"):
        result = db.execute(
            text("""
                INSERT INTO vendors (name, address, phone, is_active)
                VALUES (:name, :address, :phone, :active)
                RETURNING id
            """),
            {
                "name": name,
                "address": data.address or None,
                "phone": data.phone or None,
                "active": True
            }
        ).fetchone()

    logger.info("Created vendor %s (%s)", result.id, name)

    return {**repository.fetch_vendor(db, result.id), "ingredient_count": 0}


@router.patch("/{vendor_id}", response_model=VendorResponse)
def update_vendor(
    vendor_id: int,
    data: VendorUpdate,
    db: Session = Depends(get_db)
):
    """Update vendor"""

    repository.fetch_vendor(db, vendor_id)
    changes = data.model_dump(exclude_unset=True)

    if not changes:
        raise InputError("No fields to update")

    for field in ("name", "is_active"):
        if field in changes and changes[field] is None:
            raise InputError(f"{field} cannot be null", field=field)

    if "name" in changes:
        _check_name_free(db, changes["name"], vendor_id)

    update_fields = [f"{field} = :{field}" for field in changes]
    update_fields.append("updated_at = CURRENT_TIMESTAMP")

    query = f"""
        UPDATE vendors
        SET {', '.join(update_fields)}
        WHERE id = :vendor_id
    """

    with repository.transaction(db, "Vendor name already exists"):
        db.execute(text(query), {**changes, "vendor_id": vendor_id})

    logger.info("Updated vendor %s: %s", vendor_id, ", ".join(sorted(changes)))

    return {**repository.fetch_vendor(db, vendor_id), "ingredient_count": _ingredient_count(db, vendor_id)}


@router.delete("/{vendor_id}", response_model=VendorDeleteResponse)
def delete_vendor(
    vendor_id: int,
    db: Session = Depends(get_db)
):
    """
    Delete vendor.
    Vendors still referenced by ingredients are only marked inactive.
    """

    vendor = repository.fetch_vendor(db, vendor_id)
    ingredient_count = _ingredient_count(db, vendor_id)

    if ingredient_count > 0:
        with repository.transaction(db):
            db.execute(
                text("""
                    UPDATE vendors SET is_active = :active, updated_at = CURRENT_TIMESTAMP
                    WHERE id = :vendor_id
                """),
                {"active": False, "vendor_id": vendor_id}
            )

        logger.info(
            "Vendor %s (%s) marked inactive, has %s ingredient(s)",
            vendor_id, vendor["name"], ingredient_count
        )
        return {
            "message": f"Vendor marked as inactive (has {ingredient_count} ingredients)",
            "deactivated": True,
            "vendor": {**repository.fetch_vendor(db, vendor_id), "ingredient_count": ingredient_count}
        }

    with repository.transaction(db):
        db.execute(
            text("DELETE FROM vendors WHERE id = :vendor_id"),
            {"vendor_id": vendor_id}
        )

    logger.info("Vendor %s (%s) deleted permanently", vendor_id, vendor["name"])
    return {"message": "Vendor deleted successfully", "deactivated": False, "vendor": None}
