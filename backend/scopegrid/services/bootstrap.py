"""
Bootstrap: seed the access catalog, default roles and the initial admin

Every step is idempotent; existing rows are left untouched.
"""
from decimal import Decimal
from typing import Dict, List

from sqlalchemy.orm import Session
from loguru import logger

from scopegrid.core.config import get_settings
from scopegrid.models.business import MasterData
from scopegrid.models.rbac import Permission, Resource, Role, RolePermission, RoleResource, User
from scopegrid.security.password import hash_password

settings = get_settings()


SITE_ADMIN_COLUMNS = [
    "id", "website", "niche", "site_category", "da", "pa", "person", "price",
    "sailing_price", "discount", "adult", "casino_adult", "contact", "follow",
    "price_category", "traffic", "spam_score", "vendor_country", "phone_number",
    "bank_details", "dr", "web_country", "language", "website_type", "website_status",
    "website_quality", "num_of_links", "organic_traffic", "semrush_traffic",
    "verified", "created_at",
]

SITE_SALES_COLUMNS = [
    "id", "website", "niche", "site_category", "da", "pa", "price", "follow",
    "traffic", "dr", "web_country", "language", "website_type", "organic_traffic",
]

MASTER_DATA_ADMIN_COLUMNS = [
    "id", "order_number", "client_name", "client_email", "content_category",
    "content_link", "house_cost", "price_quoted", "created_at",
]

PERMISSIONS: List[Dict[str, str]] = [
    {"key": "VIEW_SITES_ROUTE", "description": "Read vendor sites"},
    {"key": "VIEW_MASTERDATA_ROUTE", "description": "Read content master data"},
]

RESOURCES: List[Dict] = [
    {"key": "Site_Admin", "table_name": "sites", "columns": SITE_ADMIN_COLUMNS,
     "description": "All site columns"},
    {"key": "Site_Sales", "table_name": "sites", "columns": SITE_SALES_COLUMNS,
     "description": "Site columns visible to sales"},
    {"key": "MasterData_Admin", "table_name": "master_data", "columns": MASTER_DATA_ADMIN_COLUMNS,
     "description": "All master data columns"},
    {"key": "MasterData_Sales", "table_name": "master_data",
     "columns": ["id", "order_number", "client_name", "client_email", "price_quoted"],
     "description": "Order and pricing columns"},
    {"key": "MasterData_Content", "table_name": "master_data",
     "columns": ["id", "order_number", "content_category", "content_link"],
     "description": "Content delivery columns"},
]

ROLES: Dict[str, Dict[str, List[str]]] = {
    "admin": {
        "permissions": ["VIEW_SITES_ROUTE", "VIEW_MASTERDATA_ROUTE"],
        "resources": ["Site_Admin", "MasterData_Admin"],
    },
    "sales": {
        "permissions": ["VIEW_SITES_ROUTE", "VIEW_MASTERDATA_ROUTE"],
        "resources": ["Site_Sales", "MasterData_Sales"],
    },
    "content": {
        "permissions": ["VIEW_MASTERDATA_ROUTE"],
        "resources": ["MasterData_Content"],
    },
}

SAMPLE_MASTER_DATA = [
    {"order_number": "ORD-1001", "client_name": "Northwind", "client_email": "ops@northwind.test",
     "content_category": "Technology", "content_link": "https://northwind.test/post-1",
     "house_cost": Decimal("120.00"), "price_quoted": Decimal("250.00")},
    {"order_number": "ORD-1002", "client_name": "Contoso", "client_email": "seo@contoso.test",
     "content_category": "Finance", "content_link": "https://contoso.test/post-7",
     "house_cost": Decimal("80.00"), "price_quoted": Decimal("175.00")},
    {"order_number": "ORD-1003", "client_name": "Fabrikam", "client_email": "web@fabrikam.test",
     "content_category": "Technology", "content_link": "https://fabrikam.test/post-3",
     "house_cost": Decimal("95.50"), "price_quoted": Decimal("199.99")},
]


def seed_access_catalog(db: Session) -> Dict[str, int]:
    """Create missing permissions, resources, roles and role grants."""
    created = {"permissions": 0, "resources": 0, "roles": 0}

    permissions = {p.key: p for p in db.query(Permission).all()}
    for spec in PERMISSIONS:
        if spec["key"] not in permissions:
            permission = Permission(**spec)
            db.add(permission)
            permissions[spec["key"]] = permission
            created["permissions"] += 1

    resources = {r.key: r for r in db.query(Resource).all()}
    for spec in RESOURCES:
        if spec["key"] not in resources:
            resource = Resource(**spec)
            db.add(resource)
            resources[spec["key"]] = resource
            created["resources"] += 1
    db.flush()

    for role_name, grants in ROLES.items():
        role = db.query(Role).filter(Role.name == role_name).first()
        if role:
            continue
        role = Role(name=role_name)
        db.add(role)
        db.flush()
        for key in grants["permissions"]:
            db.add(RolePermission(role_id=role.id, permission_id=permissions[key].id))
        for key in grants["resources"]:
            db.add(RoleResource(role_id=role.id, resource_id=resources[key].id))
        created["roles"] += 1

    db.commit()
    if any(created.values()):
        logger.info(f"Access catalog seeded: {created}")
    else:
        logger.info("Access catalog already present.")
    return created


def create_admin_if_needed(db: Session) -> None:
    """Create the initial administrator if it doesn't exist."""
    existing = db.query(User).filter(User.email == settings.ADMIN_EMAIL.lower()).first()
    if existing:
        logger.info("Admin user already exists.")
        return

    admin_role = db.query(Role).filter(Role.name == "admin").first()
    if not admin_role:
        logger.warning("Admin role missing; seed the access catalog first.")
        return

    db.add(User(
        name=settings.ADMIN_NAME,
        email=settings.ADMIN_EMAIL.lower(),
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        role_id=admin_role.id,
    ))
    db.commit()
    logger.info(f"Admin user created: {settings.ADMIN_EMAIL}")


def seed_sample_data(db: Session) -> int:
    """Insert a few master data rows into an empty table."""
    if db.query(MasterData).count():
        return 0
    for row in SAMPLE_MASTER_DATA:
        db.add(MasterData(**row))
    db.commit()
    logger.info(f"Inserted {len(SAMPLE_MASTER_DATA)} sample master data rows")
    return len(SAMPLE_MASTER_DATA)


def bootstrap(db: Session) -> None:
    seed_access_catalog(db)
    create_admin_if_needed(db)
    if settings.SEED_SAMPLE_DATA:
        seed_sample_data(db)
