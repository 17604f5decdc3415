"""
Seed data for development.
Creates the initial staff, the floor plan and the menu through the domain
services, so the initial stock is documented in the inventory ledger.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.utils.schemas import ProductCreate, TableCreate, UserCreate
from taqueria_api.models import User
from taqueria_api.services.domain import ProductService, TableService, UserService

logger = get_logger(__name__)


STAFF = [
    ("Juan Mesero", "juan", "juan123", "mesero"),
    ("Ana Mesera", "ana", "ana123", "mesero"),
    ("Pedro Cocinero", "pedro", "pedro123", "cocinero"),
    ("Laura Cajera", "laura", "laura123", "cajero"),
]

# (number, capacity, location)
TABLES = [
    (1, 4, "interior"),
    (2, 6, "interior"),
    (3, 2, "interior"),
    (4, 8, "interior"),
    (5, 2, "barra"),
    (6, 2, "barra"),
    (7, 2, "barra"),
    (8, 4, "terraza"),
    (9, 6, "terraza"),
    (10, 8, "terraza"),
]

# (name, price_cents, category, stock, description)
MENU = [
    ("Taco de Asada", 2500, "tacos", 100, "Taco tradicional de carne asada"),
    ("Taco de Pastor", 2000, "tacos", 100, "Carne al pastor marinada con piña"),
    ("Taco de Pollo", 2200, "tacos", 80, "Pollo asado con especias"),
    ("Taco de Pescado", 3000, "tacos", 50, "Pescado empanizado con ensalada de col"),
    ("Quesadilla Sencilla", 3500, "quesadillas", 60, "Tortilla con queso fundido"),
    ("Quesadilla con Asada", 4500, "quesadillas", 60, "Quesadilla con carne asada y queso"),
    ("Burrito de Asada", 4500, "burritos", 40, "Burrito de carne asada con guacamole"),
    ("Burrito Vegetariano", 3500, "burritos", 30, "Frijoles, aguacate y verduras"),
    ("Agua de Horchata", 1500, "bebidas", 50, "Agua fresca de arroz con canela"),
    ("Agua de Jamaica", 1500, "bebidas", 50, "Agua fresca de flor de jamaica"),
    ("Refresco", 2000, "bebidas", 100, "Refresco 600ml"),
    ("Guacamole", 1500, "complementos", 40, "Porción extra de guacamole"),
]


def seed(db: Session) -> None:
    """
    Seed an empty store. Idempotent: does nothing once any user exists.
    """
    if db.scalar(select(User.id).limit(1)):
        logger.info("Database already seeded, skipping")
        return

    users = UserService(db)
    admin = users.create_user(
        UserCreate(
            name="Administrador",
            username="admin",
            password=settings.seed_admin_password,
            role="admin",
        ),
        None,
    )
    for name, username, password, role in STAFF:
        users.create_user(
            UserCreate(name=name, username=username, password=password, role=role), admin.id
        )

    tables = TableService(db)
    for number, capacity, location in TABLES:
        tables.create_table(
            TableCreate(number=number, capacity=capacity, location=location), admin.id
        )

    products = ProductService(db)
    for name, price_cents, category, stock, description in MENU:
        products.create_product(
            ProductCreate(
                name=name,
                price_cents=price_cents,
                category=category,
                stock=stock,
                description=description,
            ),
            admin.id,
        )

    logger.info(
        "Seed completed",
        users=len(STAFF) + 1,
        tables=len(TABLES),
        products=len(MENU),
    )
