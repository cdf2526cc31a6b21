"""
Seed a demo admin, a small catalog, two recipes, a week of daily
calculations and matching stock movements.

    python -m stockroom.scripts.seed_demo
"""
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from stockroom.core.security import hash_password
from stockroom.db.session import SessionLocal
from stockroom.models.catalog import Product, Department
from stockroom.models.recipe import Recipe, RecipeLine
from stockroom.models.user import User, UserRole
from stockroom.services.daily_calculations import DailyCalculationService
from stockroom.services.recipe_costing import RecipeCostCalculator, LineInput
from stockroom.services.stock_ledger import StockLedgerService

DEMO_EMAIL = "demo@stockroom.local"

PRODUCTS = [
    ("Flour", "kg", "1.20", "20"),
    ("Sugar", "kg", "0.90", "5"),
    ("Butter", "kg", "7.50", "2"),
    ("Eggs", "pcs", "0.25", "60"),
]

RECIPES = {
    "Shortbread": ("Bakery", [("Flour", "3"), ("Sugar", "1"), ("Butter", "2")]),
    "Sponge Cake": ("Bakery", [("Flour", "0.5"), ("Sugar", "0.5"), ("Eggs", "8")]),
}


def seed(db: Session = None) -> User:
    owns_session = db is None
    db = db or SessionLocal()
    try:
        print("Checking for demo user...")
        user = db.query(User).filter(User.email == DEMO_EMAIL).first()
        if not user:
            print("Creating demo user...")
            user = User(
                name="Demo Admin",
                email=DEMO_EMAIL,
                hashed_password=hash_password("password"),
                role=UserRole.ADMIN,
                department="Bakery",
            )
            db.add(user)
            db.commit()
            db.refresh(user)
        else:
            print("Demo user already exists.")

        for name in ("Stores", "Bakery"):
            if not db.query(Department).filter(Department.name == name).first():
                db.add(Department(name=name))

        products = {}
        for name, unit, price, min_stock in PRODUCTS:
            product = db.query(Product).filter(Product.product_name == name).first()
            if not product:
                product = Product(product_name=name, unit=unit, price=Decimal(price), min_stock=Decimal(min_stock))
                db.add(product)
            products[name] = product
        db.commit()

        print("Seeding recipes...")
        recipes = {}
        calculator = RecipeCostCalculator(db)
        for name, (department_name, lines) in RECIPES.items():
            recipe = db.query(Recipe).filter(Recipe.name == name).first()
            if not recipe:
                costed = calculator.cost_recipe(
                    name,
                    department_name,
                    [LineInput(products[product].id, quantity) for product, quantity in lines],
                )
                recipe = Recipe(name=costed.name, department_name=costed.department_name, total_cost=costed.total_cost)
                recipe.lines = [
                    RecipeLine(
                        position=position,
                        product_id=line.product_id,
                        product_name=line.product_name,
                        unit=line.unit,
                        price=line.price,
                        quantity=line.quantity,
                    )
                    for position, line in enumerate(costed.lines)
                ]
                db.add(recipe)
                db.commit()
            recipes[name] = recipe

        print("Seeding stock...")
        ledger = StockLedgerService(db, user)
        for name, _, _, min_stock in PRODUCTS:
            ledger.add_stock(name, "Stores", Decimal(min_stock) * 10, reference="Opening delivery")
            ledger.transfer(name, "Stores", "Bakery", Decimal(min_stock) * 2)

        print("Seeding daily calculations...")
        today = date.today()
        calculations = DailyCalculationService(db)
        for offset in range(7):
            calculations.save(
                today - timedelta(days=offset),
                [(recipes["Shortbread"].id, Decimal(2)), (recipes["Sponge Cake"].id, Decimal(1))],
            )

        print("Seeding complete!")
        print(f"Login with: {DEMO_EMAIL} / password")
        return user
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    seed()
