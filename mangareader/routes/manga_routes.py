import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Path, UploadFile, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from mangareader.config import Settings, get_settings
from mangareader.database import get_async_session
from mangareader.deps.admin import require_admin
from mangareader.models.chapter_model import ChapterType, MangaChapter
from mangareader.models.comment_model import Comment
from mangareader.models.manga_model import Manga
from mangareader.models.user_model import User
from mangareader.schemas.manga_schemas import (
    ChapterCreatedResponse,
    ChapterForm,
    ChapterOut,
    MangaDetailOut,
    MangaForm,
    MangaOut,
    MangaResponse,
    MangaUpdatedResponse,
    MessageResponse,
)
from mangareader.storage import delete_images, save_image
from mangareader.utils.slug import slugify
from mangareader.utils.token_utils import Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/manga", tags=["manga"])


def _make_slug(*candidates: Optional[str]) -> str:
    for candidate in candidates:
        if candidate:
            slug = slugify(candidate)
            if slug:
                return slug
    raise HTTPException(status_code=400, detail="Could not derive a slug from the given title")


async def _manga_or_404(db: AsyncSession, manga_id: int) -> Manga:
    manga = await db.get(Manga, manga_id)
    if not manga:
        raise HTTPException(status_code=404, detail="Manga not found")
    return manga


async def _slug_taken(db: AsyncSession, slug: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(Manga.id).where(Manga.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Manga.id != exclude_id)
    return (await db.execute(stmt)).first() is not None


async def _chapter_slug_taken(db: AsyncSession, slug: str) -> bool:
    stmt = select(MangaChapter.id).where(MangaChapter.slug == slug)
    return (await db.execute(stmt)).first() is not None


# ------------------------------
# Manga
# ------------------------------
@router.post("/create", response_model=MangaResponse, status_code=status.HTTP_201_CREATED)
async def create_manga(
    admin: Identity = Depends(require_admin),
    form: MangaForm = Depends(MangaForm.as_form),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    slug = _make_slug(form.slug, form.title)
    if await _slug_taken(db, slug):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Manga slug already exists")

    poster_url = await save_image(image, settings) if image is not None else None

    manga = Manga(
        title=form.title,
        description=form.description,
        image=poster_url,
        tag_list=form.tag_list,
        slug=slug,
        uploader_id=admin.user_id,
        last_editor_id=admin.user_id,
        chapters=[],
    )
    db.add(manga)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        delete_images([poster_url], settings)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Manga slug already exists")
    except Exception:
        await db.rollback()
        delete_images([poster_url], settings)
        raise

    logger.info("Manga %s created by user %s", slug, admin.user_id)
    return {"manga": MangaDetailOut.model_validate(manga)}


@router.get("", response_model=List[MangaOut])
async def list_manga(db: AsyncSession = Depends(get_async_session)):
    result = await db.execute(select(Manga).order_by(Manga.created_at.desc(), Manga.id.desc()))
    return result.scalars().all()


@router.get("/tags/{tag}", response_model=List[MangaOut])
async def get_manga_by_tags(tag: str, db: AsyncSession = Depends(get_async_session)):
    wanted = {t.strip() for t in tag.split(",") if t.strip()}
    if not wanted:
        return []

    # tag_list is a JSON array; intersect in Python to stay portable across backends
    result = await db.execute(select(Manga).order_by(Manga.created_at.desc(), Manga.id.desc()))
    return [m for m in result.scalars().all() if wanted.intersection(m.tag_list or [])]


@router.get("/id/{manga_id}", response_model=MangaResponse)
async def get_manga_by_id(
    manga_id: int,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    manga = await _manga_or_404(db, manga_id)
    return {"manga": manga}


@router.put("/update/{manga_id}", response_model=MangaUpdatedResponse)
async def update_manga(
    manga_id: int,
    admin: Identity = Depends(require_admin),
    form: MangaForm = Depends(MangaForm.as_form),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    manga = await _manga_or_404(db, manga_id)

    editor = await db.get(User, admin.user_id)
    if not editor:
        raise HTTPException(status_code=404, detail="User not found")

    slug = _make_slug(form.slug, form.title)
    if slug != manga.slug and await _slug_taken(db, slug, exclude_id=manga.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Manga slug already exists")

    old_poster: Optional[str] = None
    new_poster: Optional[str] = None
    if image is not None:
        old_poster = manga.image
        new_poster = await save_image(image, settings)
        manga.image = new_poster

    manga.title = form.title
    manga.description = form.description
    manga.tag_list = list(form.tag_list)
    manga.slug = slug
    manga.last_editor_id = editor.id
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        delete_images([new_poster], settings)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Manga slug already exists")
    except Exception:
        await db.rollback()
        delete_images([new_poster], settings)
        raise

    # Old poster goes only after the new one is committed.
    if old_poster:
        delete_images([old_poster], settings)

    return {"message": "Manga details updated successfully!", "manga": manga}


@router.delete("/{manga_id}", response_model=MessageResponse)
async def delete_manga(
    manga_id: int,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    manga = await _manga_or_404(db, manga_id)

    image_urls = [manga.image]
    for chapter in manga.chapters:
        image_urls.extend(chapter.images or [])

    # Comments are not mapped on Manga; chapters go through the relationship cascade.
    await db.execute(delete(Comment).where(Comment.manga_id == manga.id))
    await db.delete(manga)
    await db.commit()

    delete_images(image_urls, settings)
    logger.info("Manga %s deleted by user %s", manga_id, admin.user_id)
    return {"message": "Deletion successful!"}


# ------------------------------
# Books / chapters
# ------------------------------
@router.post(
    "/create/{kind}",
    response_model=ChapterCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_manga_chapter(
    kind: ChapterType = Path(...),
    admin: Identity = Depends(require_admin),
    form: ChapterForm = Depends(ChapterForm.as_form),
    image: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    if not image:
        raise HTTPException(status_code=400, detail="No files uploaded")

    result = await db.execute(select(Manga).where(Manga.slug == form.manga_slug))
    manga = result.scalars().first()
    if not manga:
        raise HTTPException(status_code=404, detail="Manga not found")

    slug = _make_slug(form.slug, f"{manga.slug}-{form.title}")
    if await _chapter_slug_taken(db, slug):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="slug already exists")

    uploaded: List[str] = []
    try:
        for upload in image:
            uploaded.append(await save_image(upload, settings))

        chapter = MangaChapter(
            title=form.title,
            slug=slug,
            type=kind,
            images=uploaded,
            author_id=admin.user_id,
        )
        # insert and parent link commit together
        manga.chapters.append(chapter)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        delete_images(uploaded, settings)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="slug already exists")
    except Exception:
        await db.rollback()
        delete_images(uploaded, settings)
        raise

    return {"message": f"Create manga {kind.value} successfully", "chapter": chapter}


@router.get("/book/slug/{book_slug}", response_model=ChapterOut)
async def get_manga_book_by_slug(book_slug: str, db: AsyncSession = Depends(get_async_session)):
    result = await db.execute(select(MangaChapter).where(MangaChapter.slug == book_slug))
    chapter = result.scalars().first()
    if not chapter:
        raise HTTPException(status_code=404, detail="MangaBook not found")
    return chapter


@router.get("/book/{book_id}", response_model=ChapterOut)
async def get_manga_book_detail(book_id: int, db: AsyncSession = Depends(get_async_session)):
    chapter = await db.get(MangaChapter, book_id)
    if not chapter:
        raise HTTPException(status_code=404, detail="MangaBook not found")
    return chapter


@router.delete("/book/{manga_id}/{book_id}", response_model=MessageResponse)
async def delete_manga_book(
    manga_id: int,
    book_id: int,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
):
    await _manga_or_404(db, manga_id)

    chapter = await db.get(MangaChapter, book_id)
    if not chapter or chapter.manga_id != manga_id:
        raise HTTPException(status_code=404, detail="MangaBook not found")

    images = list(chapter.images or [])
    await db.delete(chapter)
    await db.commit()

    delete_images(images, settings)
    return {"message": "Deletion successful!"}


@router.get("/{slug}", response_model=MangaDetailOut)
async def get_manga_by_slug(slug: str, db: AsyncSession = Depends(get_async_session)):
    result = await db.execute(select(Manga).where(Manga.slug == slug))
    manga = result.scalars().first()
    if not manga:
        raise HTTPException(status_code=404, detail="Manga not found")
    return manga
