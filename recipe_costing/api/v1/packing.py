import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import text
from typing import List

from recipe_costing import repository
from recipe_costing.database import get_db
from recipe_costing.exceptions import InputError, IntegrityError
from recipe_costing.schemas.packing import (
    PackingCreate,
    PackingUpdate,
    PackingResponse
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[PackingResponse])
def get_all_packing(
    db: Session = Depends(get_db)
):
    """Get all packing items"""

    results = db.execute(
        text("""
            SELECT id, name, price, created_at, updated_at
            FROM packing
            ORDER BY name ASC
        """)
    ).fetchall()

    return [repository.as_dict(r) for r in results]


@router.get("/{packing_id}", response_model=PackingResponse)
def get_packing_by_id(
    packing_id: int,
    db: Session = Depends(get_db)
):
    """Get packing item by ID"""

    return repository.fetch_packing(db, packing_id)


@router.post("/", response_model=PackingResponse, status_code=status.HTTP_201_CREATED)
def create_packing(
    data: PackingCreate,
    db: Session = Depends(get_db)
):
    """Create new packing item"""

    with repository.transaction(db):
        result = db.execute(
            text("""
                INSERT INTO packing (name, price)
                VALUES (:name, :price)
                RETURNING id
            """),
            {"name": data.name, "price": data.price}
        ).fetchone()

    logger.info("Created packing item %s (%s)", result.id, data.name)

    return repository.fetch_packing(db, result.id)


@router.patch("/{packing_id}", response_model=PackingResponse)
def update_packing(
    packing_id: int,
    data: PackingUpdate,
    db: Session = Depends(get_db)
):
    """Update packing item; a price change recomputes the recipes using it"""

    repository.fetch_packing(db, packing_id)
    changes = data.model_dump(exclude_unset=True)

    if not changes:
        raise InputError("No fields to update")

    for field, value in changes.items():
        if value is None:
            raise InputError(f"{field} cannot be null", field=field)

    update_fields = [f"{field} = :{field}" for field in changes]
    update_fields.append("updated_at = CURRENT_TIMESTAMP")

    query = f"""
        UPDATE packing
        SET {', '.join(update_fields)}
        WHERE id = :packing_id
    """

    with repository.transaction(db):
        db.execute(text(query), {**changes, "packing_id": packing_id})
        if "price" in changes:
            repository.refresh_recipe_costs(
                db, repository.recipe_ids_using(db, packing_id=packing_id)
            )

    logger.info("Updated packing item %s: %s", packing_id, ", ".join(sorted(changes)))

    return repository.fetch_packing(db, packing_id)


@router.delete("/{packing_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_packing(
    packing_id: int,
    db: Session = Depends(get_db)
):
    """Delete packing item"""

    existing = repository.fetch_packing(db, packing_id)

    used_in_recipes = db.execute(
        text("""
            SELECT COUNT(DISTINCT recipe_id) as count
            FROM recipe_packaging
            WHERE packaging_id = :packing_id
        """),
        {"packing_id": packing_id}
    ).fetchone().count

    if used_in_recipes > 0:
        raise IntegrityError(
            f"Cannot delete packing item. It is used in {used_in_recipes} recipe(s)",
            entity="Packing item",
            entity_id=packing_id
        )

    with repository.transaction(db):
        db.execute(
            text("DELETE FROM packing WHERE id = :packing_id"),
            {"packing_id": packing_id}
        )

    logger.info("Deleted packing item %s (%s)", packing_id, existing["name"])

    return None
