import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Response
from sqlalchemy.orm import Session, sessionmaker

from config import get_settings
from database import SessionLocal
from legacy_config import categories_to_config
from legacy_config_import import LegacyConfigImportService
from periods import current_month, get_next_month, get_previous_month, validate_month
from schemas import (
    BudgetCategory,
    CategoryIn,
    CategorySaveIn,
    Transfer,
    TransferIn,
    TransferSaveIn,
)
from services import CategoryStore, RolloverStore, load_month_data

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Budget")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    return SessionLocal


def _month_or_400(month: str) -> str:
    try:
        return validate_month(month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _category_from_input(data: CategoryIn, store: CategoryStore) -> BudgetCategory:
    return BudgetCategory(
        id=data.id or store.id_factory(),
        type=data.type,
        category=data.category,
        expected=data.expected,
        tags=data.tags,
        require_all=data.require_all,
        amount_sign=data.amount_sign,
    )


def _transfer_from_input(data: TransferIn, store: RolloverStore) -> Transfer:
    return Transfer(
        id=data.id or store.id_factory(),
        from_category=data.from_category,
        to_category=data.to_category,
        amount=data.amount,
    )


@app.on_event("startup")
def startup_event():
    path = settings.legacy_config_path
    if not path:
        return
    month = current_month()
    with SessionLocal() as session:
        try:
            LegacyConfigImportService(session).run_from_path(path, month)
        except ValueError:
            logger.exception(f"legacy_config_import_failed: path={path}")


@app.get("/api/months")
def api_months(db: Session = Depends(get_db)):
    return CategoryStore(db).get_months_with_data()


@app.get("/api/months/{month}")
def api_month_data(
    month: str, session_factory: sessionmaker = Depends(get_session_factory)
):
    data = load_month_data(month, session_factory)
    return {
        "month": month,
        "categories": data.categories,
        "outgoing_rollovers": data.outgoing_rollovers,
        "incoming_rollovers": data.incoming_rollovers,
    }


@app.get("/api/months/{month}/config")
def api_month_config(month: str, db: Session = Depends(get_db)):
    categories = CategoryStore(db).load_categories(month)
    return categories_to_config(categories).to_document()


@app.put("/api/months/{month}/categories")
def api_save_all_categories(
    month: str, items: list[CategoryIn], db: Session = Depends(get_db)
):
    month = _month_or_400(month)
    store = CategoryStore(db)
    try:
        categories = [_category_from_input(item, store) for item in items]
        store.save_all_categories(month, categories)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return store.load_categories(month)


@app.post("/api/months/{month}/categories/copy")
def api_copy_categories(
    month: str, source: Optional[str] = None, db: Session = Depends(get_db)
):
    month = _month_or_400(month)
    source_month = _month_or_400(source) if source else get_previous_month(month)
    return CategoryStore(db).copy_from_month(source_month, month)


@app.put("/api/categories/{category_id}")
def api_save_category(
    category_id: str, data: CategorySaveIn, db: Session = Depends(get_db)
):
    month = _month_or_400(data.month)
    if data.id and data.id != category_id:
        raise HTTPException(status_code=400, detail="Category id mismatch")
    store = CategoryStore(db)
    try:
        category = _category_from_input(
            data.model_copy(update={"id": category_id}), store
        )
        store.save_category(month, category, data.sort_order)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return category


@app.delete("/api/categories/{category_id}")
def api_delete_category(category_id: str, db: Session = Depends(get_db)):
    CategoryStore(db).delete_category(category_id)
    return Response(status_code=204)


@app.put("/api/months/{month}/rollovers")
def api_save_month_rollovers(
    month: str,
    items: list[TransferIn],
    to_month: Optional[str] = None,
    db: Session = Depends(get_db),
):
    month = _month_or_400(month)
    target = _month_or_400(to_month) if to_month else get_next_month(month)
    store = RolloverStore(db)
    try:
        transfers = [_transfer_from_input(item, store) for item in items]
        store.save_month_rollovers(month, target, transfers)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return store.load_outgoing_rollovers(month)


@app.delete("/api/months/{month}/rollovers")
def api_delete_month_rollovers(month: str, db: Session = Depends(get_db)):
    RolloverStore(db).delete_month_rollovers(month)
    return Response(status_code=204)


@app.put("/api/rollovers/{rollover_id}")
def api_save_rollover(
    rollover_id: str, data: TransferSaveIn, db: Session = Depends(get_db)
):
    source_month = _month_or_400(data.source_month)
    to_month = _month_or_400(data.to_month)
    if data.id and data.id != rollover_id:
        raise HTTPException(status_code=400, detail="Rollover id mismatch")
    store = RolloverStore(db)
    try:
        transfer = _transfer_from_input(
            data.model_copy(update={"id": rollover_id}), store
        )
        store.save_rollover(source_month, to_month, transfer)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return transfer


@app.delete("/api/rollovers/{rollover_id}")
def api_delete_rollover(rollover_id: str, db: Session = Depends(get_db)):
    RolloverStore(db).delete_rollover(rollover_id)
    return Response(status_code=204)


@app.post("/api/legacy-config/import")
def api_import_legacy_config(
    document: dict, month: Optional[str] = None, db: Session = Depends(get_db)
):
    target = _month_or_400(month) if month else current_month()
    service = LegacyConfigImportService(db)
    try:
        config = service.parse_document(document)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    preview = service.preview(config)
    categories = service.run(config, target)
    return {
        "month": target,
        "imported": len(categories),
        "skipped": not categories and preview.total > 0,
        "warnings": preview.warnings,
        "categories": categories,
    }
