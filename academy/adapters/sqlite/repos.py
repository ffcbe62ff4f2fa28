import json
import sqlite3
from datetime import datetime
from typing import Any
from uuid import UUID

from academy.domain.entities import (
    CartItem,
    CatalogItem,
    Certificate,
    CertificateTemplate,
    ChapterProgress,
    Contact,
    Coupon,
    CourseChapter,
    CourseSession,
    DemoRequest,
    Enrollment,
    FlashSale,
    Job,
    Order,
    OrderItem,
    OtpCode,
    PaymentIntent,
    PlacementRegistration,
    Subscription,
    SubscriptionPlan,
    User,
    as_utc,
)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _ts(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return as_utc(dt).isoformat(timespec="microseconds")


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _like(term: str) -> str:
    return f"%{term.strip()}%"


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _fetch_one(self, sql: str, params: tuple[Any, ...]) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row: dict[str, Any] | None = conn.execute(sql, params).fetchone()
            return row
        finally:
            conn.close()

    def _fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            rows: list[dict[str, Any]] = conn.execute(sql, params).fetchall()
            return rows
        finally:
            conn.close()

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
            return cur.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _paged(
        self,
        table: str,
        where: list[str],
        params: list[Any],
        order_by: str,
        offset: int,
        limit: int,
    ) -> tuple[list[dict[str, Any]], int]:
        clause = f"WHERE {' AND '.join(where)}" if where else ""
        conn = self._get_conn()
        try:
            total_row = conn.execute(
                f"SELECT COUNT(*) AS n FROM {table} {clause}", tuple(params)
            ).fetchone()
            rows = conn.execute(
                f"SELECT * FROM {table} {clause} ORDER BY {order_by} LIMIT ? OFFSET ?",
                (*params, limit, offset),
            ).fetchall()
            return rows, int(total_row["n"])
        finally:
            conn.close()


# --- Users & OTP ---


class SQLiteUserRepo(_SQLiteRepo):
    def save(self, user: User) -> User:
        self._execute(
            """
            INSERT INTO users (
                id, name, email, password_hash, phone, role, is_verified,
                is_active, last_login_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                email=excluded.email,
                password_hash=excluded.password_hash,
                phone=excluded.phone,
                role=excluded.role,
                is_verified=excluded.is_verified,
                is_active=excluded.is_active,
                last_login_at=excluded.last_login_at,
                updated_at=excluded.updated_at
            """,
            (
                str(user.id),
                user.name,
                user.email,
                user.password_hash,
                user.phone,
                user.role,
                int(user.is_verified),
                int(user.is_active),
                _ts(user.last_login_at),
                _ts(user.created_at),
                _ts(user.updated_at),
            ),
        )
        return user

    def _map(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            phone=row["phone"],
            role=row["role"],
            is_verified=bool(row["is_verified"]),
            is_active=bool(row["is_active"]),
            last_login_at=_dt(row["last_login_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, user_id: UUID) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE id = ?", (str(user_id),))
        return self._map(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        row = self._fetch_one(
            "SELECT * FROM users WHERE email = ? COLLATE NOCASE", (email.strip(),)
        )
        return self._map(row) if row else None

    def list_users(
        self,
        search: str | None = None,
        role: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[User], int]:
        where: list[str] = []
        params: list[Any] = []
        if search:
            where.append("(name LIKE ? OR email LIKE ? OR phone LIKE ?)")
            params.extend([_like(search)] * 3)
        if role:
            where.append("role = ?")
            params.append(role)
        rows, total = self._paged("users", where, params, "created_at DESC", offset, limit)
        return [self._map(r) for r in rows], total


class SQLiteOtpRepo(_SQLiteRepo):
    def save(self, otp: OtpCode) -> OtpCode:
        self._execute(
            """
            INSERT INTO otp_codes (id, user_id, code_hash, purpose, expires_at, is_used, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET is_used=excluded.is_used
            """,
            (
                str(otp.id),
                str(otp.user_id),
                otp.code_hash,
                otp.purpose,
                _ts(otp.expires_at),
                int(otp.is_used),
                _ts(otp.created_at),
            ),
        )
        return otp

    def find_valid(
        self, user_id: UUID, purpose: str, code_hash: str, now: datetime
    ) -> OtpCode | None:
        """Newest unused, unexpired OTP with this code."""
        row = self._fetch_one(
            """
            SELECT * FROM otp_codes
            WHERE user_id = ? AND purpose = ? AND code_hash = ?
              AND is_used = 0 AND expires_at > ?
            ORDER BY created_at DESC LIMIT 1
            """,
            (str(user_id), purpose, code_hash, _ts(now)),
        )
        if not row:
            return None
        return OtpCode(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            code_hash=row["code_hash"],
            purpose=row["purpose"],
            expires_at=datetime.fromisoformat(row["expires_at"]),
            is_used=bool(row["is_used"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def invalidate(self, user_id: UUID, purpose: str) -> int:
        return self._execute(
            "UPDATE otp_codes SET is_used = 1 WHERE user_id = ? AND purpose = ? AND is_used = 0",
            (str(user_id), purpose),
        )


# --- Catalog ---

_CATALOG_SORTS = {
    "newest": "created_at DESC",
    "oldest": "created_at ASC",
    "price_asc": "COALESCE(NULLIF(sale_price, 0), price) ASC",
    "price_desc": "COALESCE(NULLIF(sale_price, 0), price) DESC",
    "title": "title COLLATE NOCASE ASC",
}


class SQLiteCatalogRepo(_SQLiteRepo):
    def save(self, item: CatalogItem) -> CatalogItem:
        self._execute(
            """
            INSERT INTO catalog_items (
                id, item_type, slug, title, short_description, description,
                price, sale_price, is_free, is_published, instructor_name,
                image_path, category, badges_json, starts_at, duration_minutes,
                attributes_json, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                slug=excluded.slug,
                title=excluded.title,
                short_description=excluded.short_description,
                description=excluded.description,
                price=excluded.price,
                sale_price=excluded.sale_price,
                is_free=excluded.is_free,
                is_published=excluded.is_published,
                instructor_name=excluded.instructor_name,
                image_path=excluded.image_path,
                category=excluded.category,
                badges_json=excluded.badges_json,
                starts_at=excluded.starts_at,
                duration_minutes=excluded.duration_minutes,
                attributes_json=excluded.attributes_json,
                updated_at=excluded.updated_at
            """,
            (
                str(item.id),
                item.item_type,
                item.slug,
                item.title,
                item.short_description,
                item.description,
                item.price,
                item.sale_price,
                int(item.is_free),
                int(item.is_published),
                item.instructor_name,
                item.image_path,
                item.category,
                json.dumps(item.badges),
                _ts(item.starts_at),
                item.duration_minutes,
                json.dumps(item.attributes),
                _ts(item.created_at),
                _ts(item.updated_at),
            ),
        )
        return item

    def _map(self, row: dict[str, Any]) -> CatalogItem:
        return CatalogItem(
            id=UUID(row["id"]),
            item_type=row["item_type"],
            slug=row["slug"],
            title=row["title"],
            short_description=row["short_description"],
            description=row["description"],
            price=row["price"],
            sale_price=row["sale_price"],
            is_free=bool(row["is_free"]),
            is_published=bool(row["is_published"]),
            instructor_name=row["instructor_name"],
            image_path=row["image_path"],
            category=row["category"],
            badges=json.loads(row["badges_json"]),
            starts_at=_dt(row["starts_at"]),
            duration_minutes=row["duration_minutes"],
            attributes=json.loads(row["attributes_json"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, item_id: UUID) -> CatalogItem | None:
        row = self._fetch_one("SELECT * FROM catalog_items WHERE id = ?", (str(item_id),))
        return self._map(row) if row else None

    def get_by_slug(self, item_type: str, slug: str) -> CatalogItem | None:
        row = self._fetch_one(
            "SELECT * FROM catalog_items WHERE item_type = ? AND slug = ?", (item_type, slug)
        )
        return self._map(row) if row else None

    def get_many(self, item_type: str, item_ids: list[str]) -> list[CatalogItem]:
        if not item_ids:
            return []
        marks = ",".join("?" for _ in item_ids)
        rows = self._fetch_all(
            f"SELECT * FROM catalog_items WHERE item_type = ? AND id IN ({marks})",
            (item_type, *item_ids),
        )
        return [self._map(r) for r in rows]

    def slug_exists(self, item_type: str, slug: str, exclude_id: UUID | None = None) -> bool:
        row = self._fetch_one(
            "SELECT id FROM catalog_items WHERE item_type = ? AND slug = ? AND id != ?",
            (item_type, slug, str(exclude_id) if exclude_id else ""),
        )
        return row is not None

    def list_items(
        self,
        item_type: str,
        published: bool | None = None,
        search: str | None = None,
        category: str | None = None,
        badge: str | None = None,
        is_free: bool | None = None,
        sort: str = "newest",
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[CatalogItem], int]:
        where = ["item_type = ?"]
        params: list[Any] = [item_type]
        if published is not None:
            where.append("is_published = ?")
            params.append(int(published))
        if search:
            where.append("(title LIKE ? OR instructor_name LIKE ? OR short_description LIKE ?)")
            params.extend([_like(search)] * 3)
        if category:
            where.append("category = ? COLLATE NOCASE")
            params.append(category)
        if badge:
            where.append("badges_json LIKE ?")
            params.append(f'%"{badge}"%')
        if is_free is not None:
            where.append("is_free = ?")
            params.append(int(is_free))
        order_by = _CATALOG_SORTS.get(sort, _CATALOG_SORTS["newest"])
        rows, total = self._paged("catalog_items", where, params, order_by, offset, limit)
        return [self._map(r) for r in rows], total

    def search_published(self, query: str, item_type: str, limit: int) -> list[CatalogItem]:
        rows = self._fetch_all(
            """
            SELECT * FROM catalog_items
            WHERE item_type = ? AND is_published = 1
              AND (title LIKE ? OR short_description LIKE ? OR instructor_name LIKE ?)
            ORDER BY created_at DESC LIMIT ?
            """,
            (item_type, _like(query), _like(query), _like(query), limit),
        )
        return [self._map(r) for r in rows]

    def delete(self, item_id: UUID) -> None:
        self._execute("DELETE FROM catalog_items WHERE id = ?", (str(item_id),))


# --- Jobs ---


class SQLiteJobRepo(_SQLiteRepo):
    def save(self, job: Job) -> Job:
        self._execute(
            """
            INSERT INTO jobs (
                id, title, slug, company_name, company_logo, description,
                requirements, location, salary, job_types_json, experience,
                skills_json, apply_link, allows_quick_apply, author_id, status,
                is_verified, posted_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title=excluded.title,
                slug=excluded.slug,
                company_name=excluded.company_name,
                company_logo=excluded.company_logo,
                description=excluded.description,
                requirements=excluded.requirements,
                location=excluded.location,
                salary=excluded.salary,
                job_types_json=excluded.job_types_json,
                experience=excluded.experience,
                skills_json=excluded.skills_json,
                apply_link=excluded.apply_link,
                allows_quick_apply=excluded.allows_quick_apply,
                status=excluded.status,
                is_verified=excluded.is_verified,
                posted_at=excluded.posted_at,
                updated_at=excluded.updated_at
            """,
            (
                str(job.id),
                job.title,
                job.slug,
                job.company_name,
                job.company_logo,
                job.description,
                job.requirements,
                job.location,
                job.salary,
                json.dumps(job.job_types),
                job.experience,
                json.dumps(job.skills),
                job.apply_link,
                int(job.allows_quick_apply),
                str(job.author_id) if job.author_id else None,
                job.status,
                int(job.is_verified),
                _ts(job.posted_at),
                _ts(job.created_at),
                _ts(job.updated_at),
            ),
        )
        return job

    def _map(self, row: dict[str, Any]) -> Job:
        return Job(
            id=UUID(row["id"]),
            title=row["title"],
            slug=row["slug"],
            company_name=row["company_name"],
            company_logo=row["company_logo"],
            description=row["description"],
            requirements=row["requirements"],
            location=row["location"],
            salary=row["salary"],
            job_types=json.loads(row["job_types_json"]),
            experience=row["experience"],
            skills=json.loads(row["skills_json"]),
            apply_link=row["apply_link"],
            allows_quick_apply=bool(row["allows_quick_apply"]),
            author_id=UUID(row["author_id"]) if row["author_id"] else None,
            status=row["status"],
            is_verified=bool(row["is_verified"]),
            posted_at=_dt(row["posted_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, job_id: UUID) -> Job | None:
        row = self._fetch_one("SELECT * FROM jobs WHERE id = ?", (str(job_id),))
        return self._map(row) if row else None

    def get_by_slug(self, slug: str) -> Job | None:
        row = self._fetch_one("SELECT * FROM jobs WHERE slug = ?", (slug,))
        return self._map(row) if row else None

    def slug_exists(self, slug: str, exclude_id: UUID | None = None) -> bool:
        row = self._fetch_one(
            "SELECT id FROM jobs WHERE slug = ? AND id != ?",
            (slug, str(exclude_id) if exclude_id else ""),
        )
        return row is not None

    def list_jobs(
        self,
        public_only: bool = True,
        status: str | None = None,
        search: str | None = None,
        job_type: str | None = None,
        location: str | None = None,
        experience: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Job], int]:
        where: list[str] = []
        params: list[Any] = []
        if public_only:
            where.append("status = 'PUBLISHED' AND is_verified = 1")
        elif status:
            where.append("status = ?")
            params.append(status)
        if search:
            where.append("(title LIKE ? OR company_name LIKE ? OR description LIKE ?)")
            params.extend([_like(search)] * 3)
        if job_type:
            where.append("job_types_json LIKE ?")
            params.append(f'%"{job_type}"%')
        if location:
            where.append("location LIKE ?")
            params.append(_like(location))
        if experience:
            where.append("experience LIKE ?")
            params.append(_like(experience))
        order_by = "posted_at DESC, created_at DESC" if public_only else "created_at DESC"
        rows, total = self._paged("jobs", where, params, order_by, offset, limit)
        return [self._map(r) for r in rows], total

    def delete(self, job_id: UUID) -> None:
        self._execute("DELETE FROM jobs WHERE id = ?", (str(job_id),))


# --- Cart ---


class SQLiteCartRepo(_SQLiteRepo):
    def _map(self, row: dict[str, Any]) -> CartItem:
        return CartItem(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            item_type=row["item_type"],
            item_id=row["item_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def list_for_user(self, user_id: UUID) -> list[CartItem]:
        rows = self._fetch_all(
            "SELECT * FROM cart_items WHERE user_id = ? ORDER BY created_at DESC",
            (str(user_id),),
        )
        return [self._map(r) for r in rows]

    def add(self, item: CartItem) -> bool:
        """Insert; False if the user already has this item in the cart."""
        inserted = self._execute(
            """
            INSERT INTO cart_items (id, user_id, item_type, item_id, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, item_type, item_id) DO NOTHING
            """,
            (str(item.id), str(item.user_id), item.item_type, item.item_id, _ts(item.created_at)),
        )
        return inserted > 0

    def remove(self, user_id: UUID, item_type: str, item_id: str) -> bool:
        return (
            self._execute(
                "DELETE FROM cart_items WHERE user_id = ? AND item_type = ? AND item_id = ?",
                (str(user_id), item_type, item_id),
            )
            > 0
        )

    def clear(self, user_id: UUID) -> None:
        self._execute("DELETE FROM cart_items WHERE user_id = ?", (str(user_id),))

    def replace(self, user_id: UUID, items: list[CartItem]) -> None:
        """Swap the whole cart in one transaction."""
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM cart_items WHERE user_id = ?", (str(user_id),))
            conn.executemany(
                """
                INSERT INTO cart_items (id, user_id, item_type, item_id, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, item_type, item_id) DO NOTHING
                """,
                [
                    (str(i.id), str(user_id), i.item_type, i.item_id, _ts(i.created_at))
                    for i in items
                ],
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# --- Coupons & Flash sales ---


class SQLiteCouponRepo(_SQLiteRepo):
    def save(self, coupon: Coupon) -> Coupon:
        self._execute(
            """
            INSERT INTO coupons (
                id, code, title, description, discount_type, discount_value,
                min_amount, max_discount, valid_from, valid_until, usage_limit,
                used_count, applicable_to, is_active, target_user_type,
                target_user_ids_json, ready_to_show, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                code=excluded.code,
                title=excluded.title,
                description=excluded.description,
                discount_type=excluded.discount_type,
                discount_value=excluded.discount_value,
                min_amount=excluded.min_amount,
                max_discount=excluded.max_discount,
                valid_from=excluded.valid_from,
                valid_until=excluded.valid_until,
                usage_limit=excluded.usage_limit,
                used_count=excluded.used_count,
                applicable_to=excluded.applicable_to,
                is_active=excluded.is_active,
                target_user_type=excluded.target_user_type,
                target_user_ids_json=excluded.target_user_ids_json,
                ready_to_show=excluded.ready_to_show,
                updated_at=excluded.updated_at
            """,
            (
                str(coupon.id),
                coupon.code,
                coupon.title,
                coupon.description,
                coupon.discount_type,
                coupon.discount_value,
                coupon.min_amount,
                coupon.max_discount,
                _ts(coupon.valid_from),
                _ts(coupon.valid_until),
                coupon.usage_limit,
                coupon.used_count,
                coupon.applicable_to,
                int(coupon.is_active),
                coupon.target_user_type,
                json.dumps(coupon.target_user_ids),
                int(coupon.ready_to_show),
                _ts(coupon.created_at),
                _ts(coupon.updated_at),
            ),
        )
        return coupon

    def _map(self, row: dict[str, Any]) -> Coupon:
        return Coupon(
            id=UUID(row["id"]),
            code=row["code"],
            title=row["title"],
            description=row["description"],
            discount_type=row["discount_type"],
            discount_value=row["discount_value"],
            min_amount=row["min_amount"],
            max_discount=row["max_discount"],
            valid_from=datetime.fromisoformat(row["valid_from"]),
            valid_until=datetime.fromisoformat(row["valid_until"]),
            usage_limit=row["usage_limit"],
            used_count=row["used_count"],
            applicable_to=row["applicable_to"],
            is_active=bool(row["is_active"]),
            target_user_type=row["target_user_type"],
            target_user_ids=json.loads(row["target_user_ids_json"]),
            ready_to_show=bool(row["ready_to_show"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        row = self._fetch_one("SELECT * FROM coupons WHERE id = ?", (str(coupon_id),))
        return self._map(row) if row else None

    def get_by_code(self, code: str) -> Coupon | None:
        row = self._fetch_one("SELECT * FROM coupons WHERE code = ?", (code.strip().upper(),))
        return self._map(row) if row else None

    def list_coupons(
        self,
        search: str | None = None,
        is_active: bool | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Coupon], int]:
        where: list[str] = []
        params: list[Any] = []
        if search:
            where.append("(code LIKE ? OR title LIKE ?)")
            params.extend([_like(search)] * 2)
        if is_active is not None:
            where.append("is_active = ?")
            params.append(int(is_active))
        rows, total = self._paged("coupons", where, params, "created_at DESC", offset, limit)
        return [self._map(r) for r in rows], total

    def list_showable(self, now: datetime) -> list[Coupon]:
        rows = self._fetch_all(
            """
            SELECT * FROM coupons
            WHERE is_active = 1 AND ready_to_show = 1 AND valid_from <= ? AND valid_until >= ?
            ORDER BY created_at DESC
            """,
            (_ts(now), _ts(now)),
        )
        return [self._map(r) for r in rows]

    def increment_usage(self, code: str) -> None:
        self._execute(
            "UPDATE coupons SET used_count = used_count + 1 WHERE code = ?",
            (code.strip().upper(),),
        )

    def delete(self, coupon_id: UUID) -> None:
        self._execute("DELETE FROM coupons WHERE id = ?", (str(coupon_id),))


class SQLiteFlashSaleRepo(_SQLiteRepo):
    def save(self, sale: FlashSale) -> FlashSale:
        self._execute(
            """
            INSERT INTO flash_sales (
                id, item_type, reference_ids_json, title, subtitle,
                discount_percent, theme, bg_color, text_color, start_date,
                end_date, is_active, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                item_type=excluded.item_type,
                reference_ids_json=excluded.reference_ids_json,
                title=excluded.title,
                subtitle=excluded.subtitle,
                discount_percent=excluded.discount_percent,
                theme=excluded.theme,
                bg_color=excluded.bg_color,
                text_color=excluded.text_color,
                start_date=excluded.start_date,
                end_date=excluded.end_date,
                is_active=excluded.is_active,
                updated_at=excluded.updated_at
            """,
            (
                str(sale.id),
                sale.item_type,
                json.dumps(sale.reference_ids),
                sale.title,
                sale.subtitle,
                sale.discount_percent,
                sale.theme,
                sale.bg_color,
                sale.text_color,
                _ts(sale.start_date),
                _ts(sale.end_date),
                int(sale.is_active),
                _ts(sale.created_at),
                _ts(sale.updated_at),
            ),
        )
        return sale

    def _map(self, row: dict[str, Any]) -> FlashSale:
        return FlashSale(
            id=UUID(row["id"]),
            item_type=row["item_type"],
            reference_ids=json.loads(row["reference_ids_json"]),
            title=row["title"],
            subtitle=row["subtitle"],
            discount_percent=row["discount_percent"],
            theme=row["theme"],
            bg_color=row["bg_color"],
            text_color=row["text_color"],
            start_date=datetime.fromisoformat(row["start_date"]),
            end_date=datetime.fromisoformat(row["end_date"]),
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, sale_id: UUID) -> FlashSale | None:
        row = self._fetch_one("SELECT * FROM flash_sales WHERE id = ?", (str(sale_id),))
        return self._map(row) if row else None

    def list_sales(
        self,
        item_type: str | None = None,
        is_active: bool | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[FlashSale], int]:
        where: list[str] = []
        params: list[Any] = []
        if item_type:
            where.append("item_type = ?")
            params.append(item_type)
        if is_active is not None:
            where.append("is_active = ?")
            params.append(int(is_active))
        rows, total = self._paged("flash_sales", where, params, "created_at DESC", offset, limit)
        return [self._map(r) for r in rows], total

    def list_running(self, now: datetime) -> list[FlashSale]:
        rows = self._fetch_all(
            """
            SELECT * FROM flash_sales
            WHERE is_active = 1 AND start_date <= ? AND end_date >= ?
            ORDER BY created_at DESC
            """,
            (_ts(now), _ts(now)),
        )
        return [self._map(r) for r in rows]

    def deactivate_all(self, except_id: UUID | None = None) -> int:
        return self._execute(
            "UPDATE flash_sales SET is_active = 0 WHERE is_active = 1 AND id != ?",
            (str(except_id) if except_id else "",),
        )

    def delete(self, sale_id: UUID) -> None:
        self._execute("DELETE FROM flash_sales WHERE id = ?", (str(sale_id),))


# --- Orders & Enrollments ---


class SQLiteOrderRepo(_SQLiteRepo):
    def save(self, order: Order) -> Order:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO orders (
                    id, order_number, user_id, order_type, total_amount,
                    discount_amount, final_amount, status, payment_status,
                    gateway_order_id, payment_id, signature, coupon_code,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    status=excluded.status,
                    payment_status=excluded.payment_status,
                    gateway_order_id=excluded.gateway_order_id,
                    payment_id=excluded.payment_id,
                    signature=excluded.signature,
                    updated_at=excluded.updated_at
                """,
                (
                    str(order.id),
                    order.order_number,
                    str(order.user_id),
                    order.order_type,
                    order.total_amount,
                    order.discount_amount,
                    order.final_amount,
                    order.status,
                    order.payment_status,
                    order.gateway_order_id,
                    order.payment_id,
                    order.signature,
                    order.coupon_code,
                    _ts(order.created_at),
                    _ts(order.updated_at),
                ),
            )
            conn.execute("DELETE FROM order_items WHERE order_id = ?", (str(order.id),))
            for i, item in enumerate(order.items):
                conn.execute(
                    """
                    INSERT INTO order_items (id, order_id, item_type, item_id, title, price, position)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(item.id),
                        str(order.id),
                        item.item_type,
                        item.item_id,
                        item.title,
                        item.price,
                        i,
                    ),
                )
            conn.commit()
            return order
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _map(self, conn: sqlite3.Connection, row: dict[str, Any]) -> Order:
        item_rows = conn.execute(
            "SELECT * FROM order_items WHERE order_id = ? ORDER BY position ASC", (row["id"],)
        ).fetchall()
        return Order(
            id=UUID(row["id"]),
            order_number=row["order_number"],
            user_id=UUID(row["user_id"]),
            order_type=row["order_type"],
            items=[
                OrderItem(
                    id=UUID(r["id"]),
                    item_type=r["item_type"],
                    item_id=r["item_id"],
                    title=r["title"],
                    price=r["price"],
                )
                for r in item_rows
            ],
            total_amount=row["total_amount"],
            discount_amount=row["discount_amount"],
            final_amount=row["final_amount"],
            status=row["status"],
            payment_status=row["payment_status"],
            gateway_order_id=row["gateway_order_id"],
            payment_id=row["payment_id"],
            signature=row["signature"],
            coupon_code=row["coupon_code"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _select(self, sql: str, params: tuple[Any, ...]) -> list[Order]:
        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
            return [self._map(conn, r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, order_id: UUID) -> Order | None:
        found = self._select("SELECT * FROM orders WHERE id = ?", (str(order_id),))
        return found[0] if found else None

    def find_completed_by_payment(self, gateway_order_id: str, payment_id: str) -> Order | None:
        found = self._select(
            """
            SELECT * FROM orders
            WHERE gateway_order_id = ? AND payment_id = ? AND status = 'COMPLETED'
            LIMIT 1
            """,
            (gateway_order_id, payment_id),
        )
        return found[0] if found else None

    def list_for_user(self, user_id: UUID) -> list[Order]:
        return self._select(
            "SELECT * FROM orders WHERE user_id = ? ORDER BY created_at DESC", (str(user_id),)
        )

    def count_completed_for_user(self, user_id: UUID) -> int:
        row = self._fetch_one(
            "SELECT COUNT(*) AS n FROM orders WHERE user_id = ? AND status = 'COMPLETED'",
            (str(user_id),),
        )
        return int(row["n"]) if row else 0

    def list_orders(
        self,
        status: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Order], int]:
        where: list[str] = []
        params: list[Any] = []
        if status:
            where.append("status = ?")
            params.append(status)
        if search:
            where.append("(order_number LIKE ? OR payment_id LIKE ? OR coupon_code LIKE ?)")
            params.extend([_like(search)] * 3)
        clause = f"WHERE {' AND '.join(where)}" if where else ""
        conn = self._get_conn()
        try:
            total = conn.execute(
                f"SELECT COUNT(*) AS n FROM orders {clause}", tuple(params)
            ).fetchone()["n"]
            rows = conn.execute(
                f"SELECT * FROM orders {clause} ORDER BY created_at DESC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            ).fetchall()
            return [self._map(conn, r) for r in rows], int(total)
        finally:
            conn.close()


class SQLiteEnrollmentRepo(_SQLiteRepo):
    def save(self, enrollment: Enrollment) -> Enrollment:
        self._execute(
            """
            INSERT INTO enrollments (
                id, user_id, item_type, item_id, order_id, progress, completed_at, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, item_type, item_id) DO UPDATE SET
                progress=excluded.progress,
                completed_at=excluded.completed_at
            """,
            (
                str(enrollment.id),
                str(enrollment.user_id),
                enrollment.item_type,
                enrollment.item_id,
                str(enrollment.order_id) if enrollment.order_id else None,
                enrollment.progress,
                _ts(enrollment.completed_at),
                _ts(enrollment.created_at),
            ),
        )
        return enrollment

    def _map(self, row: dict[str, Any]) -> Enrollment:
        return Enrollment(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            item_type=row["item_type"],
            item_id=row["item_id"],
            order_id=UUID(row["order_id"]) if row["order_id"] else None,
            progress=row["progress"],
            completed_at=_dt(row["completed_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def get(self, user_id: UUID, item_type: str, item_id: str) -> Enrollment | None:
        row = self._fetch_one(
            "SELECT * FROM enrollments WHERE user_id = ? AND item_type = ? AND item_id = ?",
            (str(user_id), item_type, item_id),
        )
        return self._map(row) if row else None

    def list_for_user(self, user_id: UUID, item_type: str | None = None) -> list[Enrollment]:
        if item_type:
            rows = self._fetch_all(
                "SELECT * FROM enrollments WHERE user_id = ? AND item_type = ? "
                "ORDER BY created_at DESC",
                (str(user_id), item_type),
            )
        else:
            rows = self._fetch_all(
                "SELECT * FROM enrollments WHERE user_id = ? ORDER BY created_at DESC",
                (str(user_id),),
            )
        return [self._map(r) for r in rows]

    def list_for_item(self, item_type: str, item_id: str) -> list[Enrollment]:
        rows = self._fetch_all(
            "SELECT * FROM enrollments WHERE item_type = ? AND item_id = ?",
            (item_type, item_id),
        )
        return [self._map(r) for r in rows]

    def get_by_id(self, enrollment_id: UUID) -> Enrollment | None:
        row = self._fetch_one("SELECT * FROM enrollments WHERE id = ?", (str(enrollment_id),))
        return self._map(row) if row else None

    def list_course_enrollments(
        self,
        course_id: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Enrollment], int]:
        """Course enrollments, newest first; ``search`` matches the student's name, email or phone."""
        where = ["e.item_type = 'COURSE'"]
        params: list[Any] = []
        if course_id:
            where.append("e.item_id = ?")
            params.append(course_id)
        if search:
            where.append("(u.name LIKE ? OR u.email LIKE ? OR u.phone LIKE ?)")
            params.extend([_like(search)] * 3)
        clause = " AND ".join(where)
        conn = self._get_conn()
        try:
            total = conn.execute(
                f"SELECT COUNT(*) AS n FROM enrollments e JOIN users u ON u.id = e.user_id "
                f"WHERE {clause}",
                tuple(params),
            ).fetchone()["n"]
            rows = conn.execute(
                f"SELECT e.* FROM enrollments e JOIN users u ON u.id = e.user_id "
                f"WHERE {clause} ORDER BY e.created_at DESC LIMIT ? OFFSET ?",
                (*params, limit, offset),
            ).fetchall()
            return [self._map(r) for r in rows], int(total)
        finally:
            conn.close()


class SQLitePaymentIntentRepo(_SQLiteRepo):
    def save(self, intent: PaymentIntent) -> PaymentIntent:
        self._execute(
            """
            INSERT INTO payment_intents (
                gateway_order_id, user_id, amount_paise, currency, items_json,
                coupon_code, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                intent.gateway_order_id,
                str(intent.user_id),
                intent.amount_paise,
                intent.currency,
                json.dumps(intent.items),
                intent.coupon_code,
                _ts(intent.created_at),
            ),
        )
        return intent

    def get(self, gateway_order_id: str) -> PaymentIntent | None:
        row = self._fetch_one(
            "SELECT * FROM payment_intents WHERE gateway_order_id = ?", (gateway_order_id,)
        )
        if not row:
            return None
        return PaymentIntent(
            gateway_order_id=row["gateway_order_id"],
            user_id=UUID(row["user_id"]),
            amount_paise=row["amount_paise"],
            currency=row["currency"],
            items=json.loads(row["items_json"]),
            coupon_code=row["coupon_code"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


# --- Course curriculum ---


class SQLiteCourseSessionRepo(_SQLiteRepo):
    def save(self, session: CourseSession) -> CourseSession:
        self._execute(
            """
            INSERT INTO course_sessions (
                id, course_id, title, description, position, is_published,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title=excluded.title,
                description=excluded.description,
                position=excluded.position,
                is_published=excluded.is_published,
                updated_at=excluded.updated_at
            """,
            (
                str(session.id),
                session.course_id,
                session.title,
                session.description,
                session.position,
                int(session.is_published),
                _ts(session.created_at),
                _ts(session.updated_at),
            ),
        )
        return session

    def _map(self, row: dict[str, Any]) -> CourseSession:
        return CourseSession(
            id=UUID(row["id"]),
            course_id=row["course_id"],
            title=row["title"],
            description=row["description"],
            position=row["position"],
            is_published=bool(row["is_published"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, session_id: UUID) -> CourseSession | None:
        row = self._fetch_one("SELECT * FROM course_sessions WHERE id = ?", (str(session_id),))
        return self._map(row) if row else None

    def list_for_course(self, course_id: str, published_only: bool = False) -> list[CourseSession]:
        sql = "SELECT * FROM course_sessions WHERE course_id = ?"
        if published_only:
            sql += " AND is_published = 1"
        rows = self._fetch_all(sql + " ORDER BY position ASC, created_at ASC", (course_id,))
        return [self._map(r) for r in rows]

    def next_position(self, course_id: str) -> int:
        row = self._fetch_one(
            "SELECT COALESCE(MAX(position), 0) + 1 AS n FROM course_sessions WHERE course_id = ?",
            (course_id,),
        )
        return int(row["n"]) if row else 1

    def delete(self, session_id: UUID) -> None:
        self._execute("DELETE FROM course_sessions WHERE id = ?", (str(session_id),))


class SQLiteCourseChapterRepo(_SQLiteRepo):
    def save(self, chapter: CourseChapter) -> CourseChapter:
        self._execute(
            """
            INSERT INTO course_chapters (
                id, session_id, title, slug, video_url, video_duration,
                is_free_preview, is_published, position, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title=excluded.title,
                slug=excluded.slug,
                video_url=excluded.video_url,
                video_duration=excluded.video_duration,
                is_free_preview=excluded.is_free_preview,
                is_published=excluded.is_published,
                position=excluded.position,
                updated_at=excluded.updated_at
            """,
            (
                str(chapter.id),
                str(chapter.session_id),
                chapter.title,
                chapter.slug,
                chapter.video_url,
                chapter.video_duration,
                int(chapter.is_free_preview),
                int(chapter.is_published),
                chapter.position,
                _ts(chapter.created_at),
                _ts(chapter.updated_at),
            ),
        )
        return chapter

    def _map(self, row: dict[str, Any]) -> CourseChapter:
        return CourseChapter(
            id=UUID(row["id"]),
            session_id=UUID(row["session_id"]),
            title=row["title"],
            slug=row["slug"],
            video_url=row["video_url"],
            video_duration=row["video_duration"],
            is_free_preview=bool(row["is_free_preview"]),
            is_published=bool(row["is_published"]),
            position=row["position"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, chapter_id: UUID) -> CourseChapter | None:
        row = self._fetch_one("SELECT * FROM course_chapters WHERE id = ?", (str(chapter_id),))
        return self._map(row) if row else None

    def find_in_course(self, course_id: str, slug: str) -> CourseChapter | None:
        row = self._fetch_one(
            """
            SELECT c.* FROM course_chapters c
            JOIN course_sessions s ON s.id = c.session_id
            WHERE s.course_id = ? AND c.slug = ?
            ORDER BY s.position ASC, c.position ASC LIMIT 1
            """,
            (course_id, slug),
        )
        return self._map(row) if row else None

    def list_for_sessions(
        self, session_ids: list[UUID], published_only: bool = False
    ) -> list[CourseChapter]:
        if not session_ids:
            return []
        marks = ",".join("?" for _ in session_ids)
        sql = f"SELECT * FROM course_chapters WHERE session_id IN ({marks})"
        if published_only:
            sql += " AND is_published = 1"
        rows = self._fetch_all(
            sql + " ORDER BY position ASC, created_at ASC", tuple(str(i) for i in session_ids)
        )
        return [self._map(r) for r in rows]

    def next_position(self, session_id: UUID) -> int:
        row = self._fetch_one(
            "SELECT COALESCE(MAX(position), 0) + 1 AS n FROM course_chapters WHERE session_id = ?",
            (str(session_id),),
        )
        return int(row["n"]) if row else 1

    def delete(self, chapter_id: UUID) -> None:
        self._execute("DELETE FROM course_chapters WHERE id = ?", (str(chapter_id),))


class SQLiteChapterProgressRepo(_SQLiteRepo):
    def save(self, entry: ChapterProgress) -> ChapterProgress:
        self._execute(
            """
            INSERT INTO chapter_progress (
                id, user_id, chapter_id, progress, completed, last_watched_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, chapter_id) DO UPDATE SET
                progress=excluded.progress,
                completed=excluded.completed,
                last_watched_at=excluded.last_watched_at
            """,
            (
                str(entry.id),
                str(entry.user_id),
                str(entry.chapter_id),
                entry.progress,
                int(entry.completed),
                _ts(entry.last_watched_at),
            ),
        )
        return entry

    def _map(self, row: dict[str, Any]) -> ChapterProgress:
        return ChapterProgress(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            chapter_id=UUID(row["chapter_id"]),
            progress=row["progress"],
            completed=bool(row["completed"]),
            last_watched_at=datetime.fromisoformat(row["last_watched_at"]),
        )

    def get(self, user_id: UUID, chapter_id: UUID) -> ChapterProgress | None:
        row = self._fetch_one(
            "SELECT * FROM chapter_progress WHERE user_id = ? AND chapter_id = ?",
            (str(user_id), str(chapter_id)),
        )
        return self._map(row) if row else None

    def list_for_user(self, user_id: UUID, chapter_ids: list[UUID]) -> list[ChapterProgress]:
        if not chapter_ids:
            return []
        marks = ",".join("?" for _ in chapter_ids)
        rows = self._fetch_all(
            f"SELECT * FROM chapter_progress WHERE user_id = ? AND chapter_id IN ({marks})",
            (str(user_id), *(str(i) for i in chapter_ids)),
        )
        return [self._map(r) for r in rows]


# --- Subscriptions ---


class SQLiteSubscriptionPlanRepo(_SQLiteRepo):
    def save(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        self._execute(
            """
            INSERT INTO subscription_plans (
                id, name, plan_type, price, sale_price, features_json, is_active,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                plan_type=excluded.plan_type,
                price=excluded.price,
                sale_price=excluded.sale_price,
                features_json=excluded.features_json,
                is_active=excluded.is_active,
                updated_at=excluded.updated_at
            """,
            (
                str(plan.id),
                plan.name,
                plan.plan_type,
                plan.price,
                plan.sale_price,
                json.dumps(plan.features),
                int(plan.is_active),
                _ts(plan.created_at),
                _ts(plan.updated_at),
            ),
        )
        return plan

    def _map(self, row: dict[str, Any]) -> SubscriptionPlan:
        return SubscriptionPlan(
            id=UUID(row["id"]),
            name=row["name"],
            plan_type=row["plan_type"],
            price=row["price"],
            sale_price=row["sale_price"],
            features=json.loads(row["features_json"]),
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, plan_id: UUID) -> SubscriptionPlan | None:
        row = self._fetch_one("SELECT * FROM subscription_plans WHERE id = ?", (str(plan_id),))
        return self._map(row) if row else None

    def list_plans(self, active_only: bool = False) -> list[SubscriptionPlan]:
        sql = "SELECT * FROM subscription_plans"
        if active_only:
            sql += " WHERE is_active = 1"
        rows = self._fetch_all(sql + " ORDER BY price ASC")
        return [self._map(r) for r in rows]

    def delete(self, plan_id: UUID) -> None:
        self._execute("DELETE FROM subscription_plans WHERE id = ?", (str(plan_id),))


class SQLiteSubscriptionRepo(_SQLiteRepo):
    def save(self, sub: Subscription) -> Subscription:
        self._execute(
            """
            INSERT INTO subscriptions (
                id, user_id, plan_id, plan_type, trading_view_username, status,
                start_date, end_date, total_amount, discount_amount, final_amount,
                coupon_code, gateway_order_id, payment_id, signature,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                trading_view_username=excluded.trading_view_username,
                status=excluded.status,
                start_date=excluded.start_date,
                end_date=excluded.end_date,
                gateway_order_id=excluded.gateway_order_id,
                payment_id=excluded.payment_id,
                signature=excluded.signature,
                updated_at=excluded.updated_at
            """,
            (
                str(sub.id),
                str(sub.user_id),
                str(sub.plan_id),
                sub.plan_type,
                sub.trading_view_username,
                sub.status,
                _ts(sub.start_date),
                _ts(sub.end_date),
                sub.total_amount,
                sub.discount_amount,
                sub.final_amount,
                sub.coupon_code,
                sub.gateway_order_id,
                sub.payment_id,
                sub.signature,
                _ts(sub.created_at),
                _ts(sub.updated_at),
            ),
        )
        return sub

    def _map(self, row: dict[str, Any]) -> Subscription:
        return Subscription(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            plan_id=UUID(row["plan_id"]),
            plan_type=row["plan_type"],
            trading_view_username=row["trading_view_username"],
            status=row["status"],
            start_date=datetime.fromisoformat(row["start_date"]),
            end_date=_dt(row["end_date"]),
            total_amount=row["total_amount"],
            discount_amount=row["discount_amount"],
            final_amount=row["final_amount"],
            coupon_code=row["coupon_code"],
            gateway_order_id=row["gateway_order_id"],
            payment_id=row["payment_id"],
            signature=row["signature"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, sub_id: UUID) -> Subscription | None:
        row = self._fetch_one("SELECT * FROM subscriptions WHERE id = ?", (str(sub_id),))
        return self._map(row) if row else None

    def get_by_gateway_order(self, user_id: UUID, gateway_order_id: str) -> Subscription | None:
        row = self._fetch_one(
            "SELECT * FROM subscriptions WHERE user_id = ? AND gateway_order_id = ?",
            (str(user_id), gateway_order_id),
        )
        return self._map(row) if row else None

    def find_current(self, user_id: UUID, now: datetime) -> Subscription | None:
        row = self._fetch_one(
            """
            SELECT * FROM subscriptions
            WHERE user_id = ? AND status = 'ACTIVE' AND (end_date IS NULL OR end_date >= ?)
            ORDER BY created_at DESC LIMIT 1
            """,
            (str(user_id), _ts(now)),
        )
        return self._map(row) if row else None

    def list_for_user(self, user_id: UUID) -> list[Subscription]:
        rows = self._fetch_all(
            "SELECT * FROM subscriptions WHERE user_id = ? ORDER BY created_at DESC",
            (str(user_id),),
        )
        return [self._map(r) for r in rows]

    def list_subscriptions(
        self,
        status: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Subscription], int]:
        where: list[str] = []
        params: list[Any] = []
        if status:
            where.append("status = ?")
            params.append(status)
        if search:
            where.append("trading_view_username LIKE ?")
            params.append(_like(search))
        rows, total = self._paged("subscriptions", where, params, "created_at DESC", offset, limit)
        return [self._map(r) for r in rows], total

    def list_expired_active(self, now: datetime) -> list[Subscription]:
        rows = self._fetch_all(
            """
            SELECT * FROM subscriptions
            WHERE status = 'ACTIVE' AND end_date IS NOT NULL AND end_date < ?
            """,
            (_ts(now),),
        )
        return [self._map(r) for r in rows]


# --- Certificates ---


class SQLiteCertificateTemplateRepo(_SQLiteRepo):
    def save(self, template: CertificateTemplate) -> CertificateTemplate:
        self._execute(
            """
            INSERT INTO certificate_templates (
                item_type, name, description, issuer_name, issuer_title,
                footer_text, primary_color, secondary_color, is_active,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(item_type) DO UPDATE SET
                name=excluded.name,
                description=excluded.description,
                issuer_name=excluded.issuer_name,
                issuer_title=excluded.issuer_title,
                footer_text=excluded.footer_text,
                primary_color=excluded.primary_color,
                secondary_color=excluded.secondary_color,
                is_active=excluded.is_active,
                updated_at=excluded.updated_at
            """,
            (
                template.item_type,
                template.name,
                template.description,
                template.issuer_name,
                template.issuer_title,
                template.footer_text,
                template.primary_color,
                template.secondary_color,
                int(template.is_active),
                _ts(template.created_at),
                _ts(template.updated_at),
            ),
        )
        return template

    def _map(self, row: dict[str, Any]) -> CertificateTemplate:
        return CertificateTemplate(
            item_type=row["item_type"],
            name=row["name"],
            description=row["description"],
            issuer_name=row["issuer_name"],
            issuer_title=row["issuer_title"],
            footer_text=row["footer_text"],
            primary_color=row["primary_color"],
            secondary_color=row["secondary_color"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get(self, item_type: str) -> CertificateTemplate | None:
        row = self._fetch_one(
            "SELECT * FROM certificate_templates WHERE item_type = ?", (item_type,)
        )
        return self._map(row) if row else None

    def list_templates(self) -> list[CertificateTemplate]:
        rows = self._fetch_all("SELECT * FROM certificate_templates ORDER BY item_type ASC")
        return [self._map(r) for r in rows]

    def delete(self, item_type: str) -> None:
        self._execute("DELETE FROM certificate_templates WHERE item_type = ?", (item_type,))


class SQLiteCertificateRepo(_SQLiteRepo):
    def save(self, cert: Certificate) -> Certificate:
        self._execute(
            """
            INSERT INTO certificates (
                id, certificate_no, user_id, item_type, reference_id,
                recipient_name, title, file_path, status, issued_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                recipient_name=excluded.recipient_name,
                title=excluded.title,
                file_path=excluded.file_path,
                status=excluded.status,
                updated_at=excluded.updated_at
            """,
            (
                str(cert.id),
                cert.certificate_no,
                str(cert.user_id),
                cert.item_type,
                cert.reference_id,
                cert.recipient_name,
                cert.title,
                cert.file_path,
                cert.status,
                _ts(cert.issued_at),
                _ts(cert.updated_at),
            ),
        )
        return cert

    def _map(self, row: dict[str, Any]) -> Certificate:
        return Certificate(
            id=UUID(row["id"]),
            certificate_no=row["certificate_no"],
            user_id=UUID(row["user_id"]),
            item_type=row["item_type"],
            reference_id=row["reference_id"],
            recipient_name=row["recipient_name"],
            title=row["title"],
            file_path=row["file_path"],
            status=row["status"],
            issued_at=datetime.fromisoformat(row["issued_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, cert_id: UUID) -> Certificate | None:
        row = self._fetch_one("SELECT * FROM certificates WHERE id = ?", (str(cert_id),))
        return self._map(row) if row else None

    def get_by_number(self, certificate_no: str) -> Certificate | None:
        row = self._fetch_one(
            "SELECT * FROM certificates WHERE certificate_no = ?", (certificate_no.strip(),)
        )
        return self._map(row) if row else None

    def get_for(self, user_id: UUID, item_type: str, reference_id: str) -> Certificate | None:
        row = self._fetch_one(
            "SELECT * FROM certificates WHERE user_id = ? AND item_type = ? AND reference_id = ?",
            (str(user_id), item_type, reference_id),
        )
        return self._map(row) if row else None

    def list_for_user(self, user_id: UUID, status: str | None = None) -> list[Certificate]:
        if status:
            rows = self._fetch_all(
                "SELECT * FROM certificates WHERE user_id = ? AND status = ? "
                "ORDER BY issued_at DESC",
                (str(user_id), status),
            )
        else:
            rows = self._fetch_all(
                "SELECT * FROM certificates WHERE user_id = ? ORDER BY issued_at DESC",
                (str(user_id),),
            )
        return [self._map(r) for r in rows]

    def list_certificates(
        self,
        item_type: str | None = None,
        status: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Certificate], int]:
        where: list[str] = []
        params: list[Any] = []
        if item_type:
            where.append("item_type = ?")
            params.append(item_type)
        if status:
            where.append("status = ?")
            params.append(status)
        if search:
            where.append("(certificate_no LIKE ? OR recipient_name LIKE ? OR title LIKE ?)")
            params.extend([_like(search)] * 3)
        rows, total = self._paged("certificates", where, params, "issued_at DESC", offset, limit)
        return [self._map(r) for r in rows], total

    def count_by(self) -> dict[str, int]:
        """Counts keyed by item type, plus ``total`` and ``revoked``."""
        rows = self._fetch_all(
            "SELECT item_type, status, COUNT(*) AS n FROM certificates GROUP BY item_type, status"
        )
        counts: dict[str, int] = {"total": 0, "revoked": 0}
        for r in rows:
            counts["total"] += r["n"]
            counts[r["item_type"]] = counts.get(r["item_type"], 0) + r["n"]
            if r["status"] == "REVOKED":
                counts["revoked"] += r["n"]
        return counts

    def delete(self, cert_id: UUID) -> None:
        self._execute("DELETE FROM certificates WHERE id = ?", (str(cert_id),))


# --- Enquiries ---


class SQLiteContactRepo(_SQLiteRepo):
    def save(self, contact: Contact) -> Contact:
        self._execute(
            """
            INSERT INTO contacts (id, name, email, phone, subject, message, is_read, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET is_read=excluded.is_read
            """,
            (
                str(contact.id),
                contact.name,
                contact.email,
                contact.phone,
                contact.subject,
                contact.message,
                int(contact.is_read),
                _ts(contact.created_at),
            ),
        )
        return contact

    def _map(self, row: dict[str, Any]) -> Contact:
        return Contact(
            id=UUID(row["id"]),
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            subject=row["subject"],
            message=row["message"],
            is_read=bool(row["is_read"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def get_by_id(self, contact_id: UUID) -> Contact | None:
        row = self._fetch_one("SELECT * FROM contacts WHERE id = ?", (str(contact_id),))
        return self._map(row) if row else None

    def list_contacts(
        self,
        search: str | None = None,
        is_read: bool | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Contact], int]:
        where: list[str] = []
        params: list[Any] = []
        if search:
            where.append("(name LIKE ? OR email LIKE ? OR subject LIKE ?)")
            params.extend([_like(search)] * 3)
        if is_read is not None:
            where.append("is_read = ?")
            params.append(int(is_read))
        rows, total = self._paged("contacts", where, params, "created_at DESC", offset, limit)
        return [self._map(r) for r in rows], total

    def delete(self, contact_id: UUID) -> None:
        self._execute("DELETE FROM contacts WHERE id = ?", (str(contact_id),))


class SQLiteDemoRequestRepo(_SQLiteRepo):
    def save(self, req: DemoRequest) -> DemoRequest:
        self._execute(
            """
            INSERT INTO demo_requests (
                id, name, email, phone, course_id, message, user_id, status,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status,
                updated_at=excluded.updated_at
            """,
            (
                str(req.id),
                req.name,
                req.email,
                req.phone,
                req.course_id,
                req.message,
                str(req.user_id) if req.user_id else None,
                req.status,
                _ts(req.created_at),
                _ts(req.updated_at),
            ),
        )
        return req

    def _map(self, row: dict[str, Any]) -> DemoRequest:
        return DemoRequest(
            id=UUID(row["id"]),
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            course_id=row["course_id"],
            message=row["message"],
            user_id=UUID(row["user_id"]) if row["user_id"] else None,
            status=row["status"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, req_id: UUID) -> DemoRequest | None:
        row = self._fetch_one("SELECT * FROM demo_requests WHERE id = ?", (str(req_id),))
        return self._map(row) if row else None

    def list_requests(
        self,
        status: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[DemoRequest], int]:
        where: list[str] = []
        params: list[Any] = []
        if status:
            where.append("status = ?")
            params.append(status)
        rows, total = self._paged("demo_requests", where, params, "created_at DESC", offset, limit)
        return [self._map(r) for r in rows], total


class SQLitePlacementRepo(_SQLiteRepo):
    def save(self, reg: PlacementRegistration) -> PlacementRegistration:
        self._execute(
            """
            INSERT INTO placement_registrations (
                id, name, email, country_code, whatsapp_number, course, notes,
                source, otp_hash, otp_expires_at, is_verified, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                otp_hash=excluded.otp_hash,
                otp_expires_at=excluded.otp_expires_at,
                is_verified=excluded.is_verified,
                updated_at=excluded.updated_at
            """,
            (
                str(reg.id),
                reg.name,
                reg.email,
                reg.country_code,
                reg.whatsapp_number,
                reg.course,
                reg.notes,
                reg.source,
                reg.otp_hash,
                _ts(reg.otp_expires_at),
                int(reg.is_verified),
                _ts(reg.created_at),
                _ts(reg.updated_at),
            ),
        )
        return reg

    def _map(self, row: dict[str, Any]) -> PlacementRegistration:
        return PlacementRegistration(
            id=UUID(row["id"]),
            name=row["name"],
            email=row["email"],
            country_code=row["country_code"],
            whatsapp_number=row["whatsapp_number"],
            course=row["course"],
            notes=row["notes"],
            source=row["source"],
            otp_hash=row["otp_hash"],
            otp_expires_at=_dt(row["otp_expires_at"]),
            is_verified=bool(row["is_verified"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_by_id(self, reg_id: UUID) -> PlacementRegistration | None:
        row = self._fetch_one(
            "SELECT * FROM placement_registrations WHERE id = ?", (str(reg_id),)
        )
        return self._map(row) if row else None

    def list_registrations(
        self,
        search: str | None = None,
        is_verified: bool | None = None,
        course: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[PlacementRegistration], int]:
        where: list[str] = []
        params: list[Any] = []
        if search:
            where.append("(name LIKE ? OR email LIKE ? OR whatsapp_number LIKE ?)")
            params.extend([_like(search)] * 3)
        if is_verified is not None:
            where.append("is_verified = ?")
            params.append(int(is_verified))
        if course:
            where.append("course = ?")
            params.append(course)
        rows, total = self._paged(
            "placement_registrations", where, params, "created_at DESC", offset, limit
        )
        return [self._map(r) for r in rows], total
