# Fichier: app/crud/vocab_crud.py
"""Owner-scoped persistence helpers for vocabulary lists and items.

Every helper commits on its own: the generation pipelines rely on a
compensating delete of the list rather than on a multi-statement transaction.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from sqlalchemy import func, insert
from sqlalchemy.orm import Session

from app.models.vocab.vocab_item_model import MAX_ITEMS_PER_LIST, VocabItem
from app.models.vocab.vocab_list_model import VocabList, VocabListKind


def create_list(
    db: Session,
    owner_id: int,
    *,
    name: str,
    kind: VocabListKind = VocabListKind.MANUAL,
    scenario_prompt: str | None = None,
) -> VocabList:
    vocab_list = VocabList(
        user_id=owner_id,
        name=name,
        kind=kind,
        scenario_prompt=scenario_prompt if kind == VocabListKind.SCENARIO else None,
    )
    db.add(vocab_list)
    db.commit()
    db.refresh(vocab_list)
    return vocab_list


def get_list(db: Session, owner_id: int, list_id: str) -> VocabList | None:
    return (
        db.query(VocabList)
        .filter(VocabList.id == list_id, VocabList.user_id == owner_id)
        .first()
    )


def list_lists(db: Session, owner_id: int) -> list[VocabList]:
    return (
        db.query(VocabList)
        .filter(VocabList.user_id == owner_id)
        .order_by(VocabList.created_at.desc())
        .all()
    )


def delete_lists(db: Session, owner_id: int, list_ids: Iterable[str]) -> int:
    """Delete the caller's lists among ``list_ids``; items, sessions, problems and attempts cascade."""

    ids = [list_id for list_id in dict.fromkeys(list_ids) if list_id]
    if not ids:
        return 0

    lists = (
        db.query(VocabList)
        .filter(VocabList.id.in_(ids), VocabList.user_id == owner_id)
        .all()
    )
    for vocab_list in lists:
        db.delete(vocab_list)
    db.commit()
    return len(lists)


def delete_list(db: Session, owner_id: int, list_id: str) -> bool:
    return delete_lists(db, owner_id, [list_id]) == 1


def count_items(db: Session, owner_id: int, list_id: str, *, active_only: bool = False) -> int:
    query = (
        db.query(func.count(VocabItem.id))
        .filter(VocabItem.list_id == list_id, VocabItem.user_id == owner_id)
    )
    if active_only:
        query = query.filter(VocabItem.is_active.is_(True))
    return int(query.scalar() or 0)


def list_items(db: Session, owner_id: int, list_id: str) -> list[VocabItem]:
    return (
        db.query(VocabItem)
        .filter(VocabItem.list_id == list_id, VocabItem.user_id == owner_id)
        .order_by(VocabItem.created_at.desc())
        .all()
    )


def list_active_items(
    db: Session,
    owner_id: int,
    list_id: str,
    *,
    limit: int = MAX_ITEMS_PER_LIST,
) -> list[VocabItem]:
    """Most recently created active items first."""

    return (
        db.query(VocabItem)
        .filter(
            VocabItem.list_id == list_id,
            VocabItem.user_id == owner_id,
            VocabItem.is_active.is_(True),
        )
        .order_by(VocabItem.created_at.desc())
        .limit(limit)
        .all()
    )


def create_item(
    db: Session,
    owner_id: int,
    list_id: str,
    *,
    ja_surface: str,
    ko_meaning: str,
    ja_reading_hira: str | None = None,
    memo: str | None = None,
) -> VocabItem:
    item = VocabItem(
        user_id=owner_id,
        list_id=list_id,
        ja_surface=ja_surface,
        ja_reading_hira=ja_reading_hira,
        ko_meaning=ko_meaning,
        memo=memo,
        is_active=True,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def insert_items(db: Session, rows: Sequence[dict[str, Any]]) -> None:
    """Bulk insert; generated ids are not returned (see ``find_items_by_surfaces``)."""

    if not rows:
        return
    db.execute(insert(VocabItem), list(rows))
    db.commit()


def find_items_by_surfaces(
    db: Session,
    owner_id: int,
    list_id: str,
    surfaces: Iterable[str],
) -> list[VocabItem]:
    surface_list = list(dict.fromkeys(surfaces))
    if not surface_list:
        return []
    return (
        db.query(VocabItem)
        .filter(
            VocabItem.list_id == list_id,
            VocabItem.user_id == owner_id,
            VocabItem.ja_surface.in_(surface_list),
        )
        .all()
    )


def get_item(db: Session, owner_id: int, item_id: str) -> VocabItem | None:
    return (
        db.query(VocabItem)
        .filter(VocabItem.id == item_id, VocabItem.user_id == owner_id)
        .first()
    )


def set_item_active(db: Session, item: VocabItem, is_active: bool) -> VocabItem:
    item.is_active = is_active
    db.commit()
    db.refresh(item)
    return item


def delete_items(db: Session, owner_id: int, list_id: str, item_ids: Iterable[str]) -> int:
    ids = [item_id for item_id in dict.fromkeys(item_ids) if item_id]
    if not ids:
        return 0
    deleted = (
        db.query(VocabItem)
        .filter(
            VocabItem.id.in_(ids),
            VocabItem.list_id == list_id,
            VocabItem.user_id == owner_id,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return int(deleted or 0)
