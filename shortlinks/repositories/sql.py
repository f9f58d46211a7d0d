"""
Relational Repositories

One implementation of the repository contracts for every SQL engine. All
queries are written once against the canonical schema in
``shortlinks.db.models``; the only dialect-specific piece used here is the
adapter's ``insert_ignore``.

Transactions:
- each repository operation runs in its own session and transaction
- multi-statement operations (update then read back) commit or roll back
  as a unit
- the whole operation is bounded by ``timeout``; expiry, lost connections,
  lock timeouts and other driver errors surface as StorageUnavailableError

Integrity errors are classified by constraint name (PostgreSQL, MySQL) or by
column list (SQLite), so every engine raises the same domain errors.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortlinks.core.entities import (
    Category,
    CategoryWithCount,
    ShortURL,
    User,
    utc_now,
)
from shortlinks.core.exceptions import (
    DuplicateCategoryError,
    DuplicateCodeError,
    DuplicateEmailError,
    NotFoundError,
    ShortCodeNotFoundError,
    StorageUnavailableError,
)
from shortlinks.db.interface import DatabaseAdapter
from shortlinks.db.models import (
    UQ_CATEGORY_NAME,
    UQ_SHORT_CODE,
    UQ_USER_EMAIL,
    CategoryRecord,
    ShortURLRecord,
    URLCategoryRecord,
    UserRecord,
)
from shortlinks.repositories.base import (
    CategoryRepository,
    URLRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def translate_integrity_error(
    error: IntegrityError,
    short_code: Optional[str] = None,
    email: Optional[str] = None,
    category_name: Optional[str] = None,
    missing: Optional[tuple[str, str]] = None,
) -> Exception:
    """
    Map a driver integrity error to a domain error.

    Args:
        error: The IntegrityError raised by SQLAlchemy
        short_code, email, category_name: Values for the duplicate messages
        missing: (entity, identifier) reported when a foreign key fails

    Returns:
        The domain exception to raise, or the original error if unknown
    """
    message = str(error.orig if error.orig is not None else error).lower()

    if UQ_SHORT_CODE in message or "urls.short_code" in message:
        return DuplicateCodeError(short_code or "")
    if UQ_USER_EMAIL in message or "users.email" in message:
        return DuplicateEmailError(email or "")
    if UQ_CATEGORY_NAME in message or "categories.user_id, categories.name" in message:
        return DuplicateCategoryError(category_name or "")
    if "foreign key" in message and missing is not None:
        return NotFoundError(*missing)
    return error


class _SQLRepository:
    """Shared session, timeout and error handling for the SQL repositories."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        adapter: DatabaseAdapter,
        timeout: float = 5.0,
    ):
        self.session_maker = session_maker
        self.adapter = adapter
        self.timeout = timeout

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[T]],
        on_integrity_error: Optional[Callable[[IntegrityError], Exception]] = None,
    ) -> T:
        async def transaction() -> T:
            async with self.session_maker() as session:
                async with session.begin():
                    return await work(session)

        try:
            return await asyncio.wait_for(transaction(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("%s timed out after %ss", operation, self.timeout)
            raise StorageUnavailableError(
                f"{operation} timed out after {self.timeout}s", original_error=e
            )
        except (OperationalError, InterfaceError) as e:
            logger.error("%s failed: %s", operation, e)
            raise StorageUnavailableError(f"{operation} failed", original_error=e)
        except IntegrityError as e:
            translated = (
                on_integrity_error(e) if on_integrity_error else translate_integrity_error(e)
            )
            if translated is e:
                logger.error("Unclassified integrity error in %s: %s", operation, e)
                raise StorageUnavailableError(
                    f"{operation} was rejected by the database", original_error=e
                ) from e
            raise translated from e
        except DBAPIError as e:
            # DataError, ProgrammingError and other driver-level failures
            logger.error("%s raised a database error: %s", operation, e, exc_info=True)
            raise StorageUnavailableError(
                f"{operation} was rejected by the database", original_error=e
            ) from e


class SQLURLRepository(_SQLRepository, URLRepository):
    """URL repository on MySQL, PostgreSQL or SQLite."""

    async def create_url(self, url: ShortURL) -> ShortURL:
        async def work(session: AsyncSession) -> ShortURL:
            session.add(ShortURLRecord(**url.model_dump()))
            await session.flush()
            return url.model_copy()

        return await self._run(
            "create_url",
            work,
            lambda e: translate_integrity_error(
                e, short_code=url.short_code, missing=("User", url.user_id or "")
            ),
        )

    async def get_url_by_code(self, short_code: str) -> ShortURL:
        async def work(session: AsyncSession) -> ShortURL:
            record = await session.scalar(
                select(ShortURLRecord).where(ShortURLRecord.short_code == short_code)
            )
            if record is None:
                raise ShortCodeNotFoundError(short_code)
            return ShortURL.model_validate(record)

        return await self._run("get_url_by_code", work)

    async def get_url_by_id(self, url_id: str) -> ShortURL:
        async def work(session: AsyncSession) -> ShortURL:
            record = await session.get(ShortURLRecord, url_id)
            if record is None:
                raise NotFoundError("Short URL", url_id)
            return ShortURL.model_validate(record)

        return await self._run("get_url_by_id", work)

    async def code_exists(self, short_code: str) -> bool:
        async def work(session: AsyncSession) -> bool:
            found = await session.scalar(
                select(ShortURLRecord.id).where(ShortURLRecord.short_code == short_code)
            )
            return found is not None

        return await self._run("code_exists", work)

    async def update_url(self, short_code: str, new_url: str) -> ShortURL:
        async def work(session: AsyncSession) -> ShortURL:
            result = await session.execute(
                update(ShortURLRecord)
                .where(ShortURLRecord.short_code == short_code)
                .values(url=new_url, updated_at=utc_now())
            )
            if result.rowcount == 0:
                raise ShortCodeNotFoundError(short_code)
            record = await session.scalar(
                select(ShortURLRecord).where(ShortURLRecord.short_code == short_code)
            )
            return ShortURL.model_validate(record)

        return await self._run("update_url", work)

    async def delete_url(self, short_code: str) -> None:
        async def work(session: AsyncSession) -> None:
            # url_categories rows go with it (ON DELETE CASCADE)
            result = await session.execute(
                delete(ShortURLRecord).where(ShortURLRecord.short_code == short_code)
            )
            if result.rowcount == 0:
                raise ShortCodeNotFoundError(short_code)

        await self._run("delete_url", work)

    async def increment_access_count(self, short_code: str) -> int:
        async def work(session: AsyncSession) -> int:
            # MySQL has no UPDATE ... RETURNING; the read shares the transaction
            result = await session.execute(
                update(ShortURLRecord)
                .where(ShortURLRecord.short_code == short_code)
                .values(access_count=ShortURLRecord.access_count + 1)
            )
            if result.rowcount == 0:
                raise ShortCodeNotFoundError(short_code)
            return await session.scalar(
                select(ShortURLRecord.access_count).where(
                    ShortURLRecord.short_code == short_code
                )
            )

        return await self._run("increment_access_count", work)

    async def list_urls_by_owner(self, user_id: str) -> Sequence[ShortURL]:
        async def work(session: AsyncSession) -> list[ShortURL]:
            records = await session.scalars(
                select(ShortURLRecord)
                .where(ShortURLRecord.user_id == user_id)
                .order_by(ShortURLRecord.created_at.desc())
            )
            return [ShortURL.model_validate(record) for record in records]

        return await self._run("list_urls_by_owner", work)


class SQLUserRepository(_SQLRepository, UserRepository):
    """User repository on MySQL, PostgreSQL or SQLite."""

    async def create_user(self, user: User) -> User:
        async def work(session: AsyncSession) -> User:
            session.add(UserRecord(**user.model_dump()))
            await session.flush()
            return user.model_copy()

        return await self._run(
            "create_user",
            work,
            lambda e: translate_integrity_error(e, email=user.email),
        )

    async def find_by_email(self, email: str) -> Optional[User]:
        async def work(session: AsyncSession) -> Optional[User]:
            record = await session.scalar(
                select(UserRecord).where(UserRecord.email == email)
            )
            return User.model_validate(record) if record else None

        return await self._run("find_by_email", work)

    async def find_by_id(self, user_id: str) -> Optional[User]:
        async def work(session: AsyncSession) -> Optional[User]:
            record = await session.get(UserRecord, user_id)
            return User.model_validate(record) if record else None

        return await self._run("find_by_id", work)

    async def delete_user(self, user_id: str) -> None:
        async def work(session: AsyncSession) -> None:
            # urls.user_id -> NULL, categories and their associations cascade
            result = await session.execute(
                delete(UserRecord).where(UserRecord.id == user_id)
            )
            if result.rowcount == 0:
                raise NotFoundError("User", user_id)

        await self._run("delete_user", work)


class SQLCategoryRepository(_SQLRepository, CategoryRepository):
    """Category and association repository on MySQL, PostgreSQL or SQLite."""

    async def create_category(self, category: Category) -> Category:
        async def work(session: AsyncSession) -> Category:
            session.add(CategoryRecord(**category.model_dump()))
            await session.flush()
            return category.model_copy()

        return await self._run(
            "create_category",
            work,
            lambda e: translate_integrity_error(
                e, category_name=category.name, missing=("User", category.user_id)
            ),
        )

    async def get_category(self, category_id: str) -> Category:
        async def work(session: AsyncSession) -> Category:
            record = await session.get(CategoryRecord, category_id)
            if record is None:
                raise NotFoundError("Category", category_id)
            return Category.model_validate(record)

        return await self._run("get_category", work)

    async def find_category_by_name(self, user_id: str, name: str) -> Optional[Category]:
        async def work(session: AsyncSession) -> Optional[Category]:
            record = await session.scalar(
                select(CategoryRecord).where(
                    CategoryRecord.user_id == user_id,
                    CategoryRecord.name == name,
                )
            )
            return Category.model_validate(record) if record else None

        return await self._run("find_category_by_name", work)

    async def update_category(self, category: Category) -> Category:
        async def work(session: AsyncSession) -> Category:
            result = await session.execute(
                update(CategoryRecord)
                .where(CategoryRecord.id == category.id)
                .values(
                    name=category.name,
                    description=category.description,
                    icon=category.icon,
                    color=category.color,
                    updated_at=utc_now(),
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("Category", category.id)
            record = await session.get(CategoryRecord, category.id)
            return Category.model_validate(record)

        return await self._run(
            "update_category",
            work,
            lambda e: translate_integrity_error(e, category_name=category.name),
        )

    async def delete_category(self, category_id: str) -> None:
        async def work(session: AsyncSession) -> None:
            result = await session.execute(
                delete(CategoryRecord).where(CategoryRecord.id == category_id)
            )
            if result.rowcount == 0:
                raise NotFoundError("Category", category_id)

        await self._run("delete_category", work)

    async def list_categories_by_owner(self, user_id: str) -> Sequence[Category]:
        async def work(session: AsyncSession) -> list[Category]:
            records = await session.scalars(
                select(CategoryRecord)
                .where(CategoryRecord.user_id == user_id)
                .order_by(CategoryRecord.name)
            )
            return [Category.model_validate(record) for record in records]

        return await self._run("list_categories_by_owner", work)

    async def list_categories_with_url_count(self, user_id: str) -> Sequence[CategoryWithCount]:
        async def work(session: AsyncSession) -> list[CategoryWithCount]:
            url_count = func.count(func.distinct(URLCategoryRecord.url_id)).label("url_count")
            rows = await session.execute(
                select(CategoryRecord, url_count)
                .outerjoin(
                    URLCategoryRecord,
                    URLCategoryRecord.category_id == CategoryRecord.id,
                )
                .where(CategoryRecord.user_id == user_id)
                .group_by(*CategoryRecord.__table__.columns)
                .order_by(CategoryRecord.name)
            )
            return [
                CategoryWithCount(
                    **Category.model_validate(record).model_dump(), url_count=count
                )
                for record, count in rows.all()
            ]

        return await self._run("list_categories_with_url_count", work)

    async def get_urls_by_category(self, category_id: str) -> Sequence[ShortURL]:
        async def work(session: AsyncSession) -> list[ShortURL]:
            records = await session.scalars(
                select(ShortURLRecord)
                .join(URLCategoryRecord, URLCategoryRecord.url_id == ShortURLRecord.id)
                .where(URLCategoryRecord.category_id == category_id)
                .order_by(ShortURLRecord.created_at.desc())
            )
            return [ShortURL.model_validate(record) for record in records]

        return await self._run("get_urls_by_category", work)

    async def get_categories_for_url(self, url_id: str) -> Sequence[Category]:
        async def work(session: AsyncSession) -> list[Category]:
            records = await session.scalars(
                select(CategoryRecord)
                .join(URLCategoryRecord, URLCategoryRecord.category_id == CategoryRecord.id)
                .where(URLCategoryRecord.url_id == url_id)
                .order_by(CategoryRecord.name)
            )
            return [Category.model_validate(record) for record in records]

        return await self._run("get_categories_for_url", work)

    async def add_url_categories(self, url_id: str, category_ids: Sequence[str]) -> None:
        wanted = list(dict.fromkeys(category_ids))

        async def work(session: AsyncSession) -> None:
            # MySQL INSERT IGNORE also swallows foreign key failures, so both
            # ends are checked explicitly inside the transaction
            if await session.get(ShortURLRecord, url_id) is None:
                raise NotFoundError("Short URL", url_id)
            if not wanted:
                return
            found = set(
                await session.scalars(
                    select(CategoryRecord.id).where(CategoryRecord.id.in_(wanted))
                )
            )
            missing = [cid for cid in wanted if cid not in found]
            if missing:
                raise NotFoundError("Category", missing[0])

            now = utc_now()
            await session.execute(
                self.adapter.insert_ignore(URLCategoryRecord.__table__).values(
                    [
                        {"url_id": url_id, "category_id": cid, "created_at": now}
                        for cid in wanted
                    ]
                )
            )

        await self._run(
            "add_url_categories",
            work,
            lambda e: translate_integrity_error(e, missing=("Short URL", url_id)),
        )

    async def remove_url_categories(self, url_id: str, category_ids: Sequence[str]) -> None:
        if not category_ids:
            return

        async def work(session: AsyncSession) -> None:
            await session.execute(
                delete(URLCategoryRecord).where(
                    URLCategoryRecord.url_id == url_id,
                    URLCategoryRecord.category_id.in_(list(category_ids)),
                )
            )

        await self._run("remove_url_categories", work)
