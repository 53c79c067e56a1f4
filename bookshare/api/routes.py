import logging
from typing import List

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from starlette.concurrency import run_in_threadpool

from bookshare.api.schemas import BookOut, CategoryOut, MessageOut, RatingUpdate, UploadResult
from bookshare.core import messages
from bookshare.core.errors import (
    BookFileMissing,
    BookNotFound,
    BookshareError,
    InvalidRating,
    InvalidUpload,
    MissingFile,
)
from bookshare.services.catalog_store import CatalogStore
from bookshare.services.storage.file_store import FileStore

logger = logging.getLogger(__name__)
router = APIRouter()

MIN_RATING = 1
MAX_RATING = 5


def parse_book_id(book_id: str) -> int:
    # Any id that cannot name a row is reported like an unknown book.
    try:
        return int(book_id)
    except ValueError:
        raise BookNotFound(details=book_id) from None


def get_catalog_store(request: Request) -> CatalogStore:
    return request.app.state.catalog_store


def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store


@router.get("/health")
async def health(catalog: CatalogStore = Depends(get_catalog_store)):
    try:
        db_ok = await run_in_threadpool(catalog.ping)
    except BookshareError as e:
        logger.warning("Health DB probe failed: %s", e.__cause__ or e)
        db_ok = False
    body = {"status": "ok" if db_ok else "degraded", "service": "bookshare", "db": db_ok}
    return JSONResponse(status_code=200 if db_ok else 503, content=body)


@router.get("/api/books", response_model=List[BookOut])
async def list_books(catalog: CatalogStore = Depends(get_catalog_store)):
    return await run_in_threadpool(catalog.list_books)


@router.post("/api/books", response_model=UploadResult)
async def upload_book(
    title: str = Form(""),
    author: str = Form(""),
    description: str | None = Form(None),
    category: str | None = Form(None),
    file: UploadFile | None = File(None),
    catalog: CatalogStore = Depends(get_catalog_store),
    files: FileStore = Depends(get_file_store),
) -> UploadResult:
    """
    Store the uploaded file first, then insert the catalog row.
    A failed insert removes the file it just wrote.
    """
    if file is None or not file.filename:
        raise MissingFile()

    title, author = title.strip(), author.strip()
    if not title or not author:
        raise InvalidUpload()

    stored = await files.save(file)
    try:
        book = await run_in_threadpool(
            catalog.add_book,
            title=title,
            author=author,
            description=(description or "").strip(),
            category=(category or "").strip() or messages.DEFAULT_CATEGORY,
            filename=stored.stored_name,
            originalname=stored.original_name,
        )
    except Exception:
        await run_in_threadpool(files.delete, stored.stored_name)
        raise

    return UploadResult(message=messages.UPLOAD_OK, id=book.id)


@router.get("/api/books/{book_id}/download")
async def download_book(
    book_id: str,
    catalog: CatalogStore = Depends(get_catalog_store),
    files: FileStore = Depends(get_file_store),
):
    book = await run_in_threadpool(catalog.get_book, parse_book_id(book_id))
    if book is None:
        raise BookNotFound()

    if not await run_in_threadpool(files.exists, book.filename):
        logger.warning("Book %d points at missing file %s", book.id, book.filename)
        raise BookFileMissing()

    return FileResponse(files.path_for(book.filename), filename=book.originalname)


@router.put("/api/books/{book_id}/rating", response_model=MessageOut)
async def update_rating(
    book_id: str,
    payload: RatingUpdate,
    catalog: CatalogStore = Depends(get_catalog_store),
) -> MessageOut:
    # Last write wins: no averaging, no per-user history.
    if not MIN_RATING <= payload.rating <= MAX_RATING:
        raise InvalidRating(details=str(payload.rating))

    updated = await run_in_threadpool(catalog.update_rating, parse_book_id(book_id), payload.rating)
    if not updated:
        raise BookNotFound()
    return MessageOut(message=messages.RATING_OK)


@router.get("/api/categories", response_model=List[CategoryOut])
async def list_categories(catalog: CatalogStore = Depends(get_catalog_store)):
    return await run_in_threadpool(catalog.list_categories)
