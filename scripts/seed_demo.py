#!/usr/bin/env python3
"""
Seed script to create a demo administrator, customers and orders
"""

import asyncio
from decimal import Decimal

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from cantina.database import SessionLocal, engine, Base
    from cantina.models import Customer, PaymentMethod, PaymentStatus, User, UserRole
    from cantina.schemas.order import OrderCreate, OrderItemCreate
    from cantina.services import customers as customer_service
    from cantina.services import orders as order_service
    from cantina.services import payments as payment_service

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        existing = await db.scalar(select(User).where(User.email == "admin@cantina.example.com"))
        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating admin user...")
        db.add(
            User(
                email="admin@cantina.example.com",
                hashed_password=pwd_context.hash("admin123"),
                full_name="Salete",
                role=UserRole.ADMIN,
                is_active=True,
            )
        )
        await db.commit()

        print("Creating demo customers...")
        maria = await customer_service.identify_customer(db, "Maria Souza", "11987654321")
        joao = await customer_service.identify_customer(db, "Joao Lima", "11912345678")

        menu = [
            {"product_id": 1, "product_name": "Pastel", "unit_price": Decimal("6.50"), "flavor": "Queijo"},
            {"product_id": 2, "product_name": "Coxinha", "unit_price": Decimal("5.00"), "flavor": None},
            {"product_id": 3, "product_name": "Suco", "unit_price": Decimal("4.00"), "flavor": "Laranja"},
        ]

        def order_for(customer: Customer, method: PaymentMethod, quantities):
            items = [
                OrderItemCreate(quantity=quantity, **menu[index])
                for index, quantity in quantities
            ]
            total = sum((item.unit_price * item.quantity for item in items), Decimal("0"))
            return OrderCreate(
                customer_id=customer.id,
                items=items,
                total_amount=total,
                payment_method=method,
            )

        print("Creating demo orders...")
        paid = await order_service.create_order(db, order_for(maria, PaymentMethod.PIX, [(0, 2), (2, 1)]))
        await payment_service.update_payment_status(db, paid.id, PaymentStatus.PAID)
        await order_service.create_order(db, order_for(maria, PaymentMethod.PAY_LATER, [(1, 3)]))
        await order_service.create_order(db, order_for(joao, PaymentMethod.CASH, [(0, 1), (1, 1)]))
        await order_service.create_order(db, order_for(joao, PaymentMethod.PAY_LATER, [(2, 2)]))

        for customer in (maria, joao):
            await db.refresh(customer)

        print(f"""
Demo data created successfully!

Admin:
  Email: admin@cantina.example.com
  Password: admin123

Customers:
  {maria.name} ({maria.phone}): spent {maria.total_spent}, debt {maria.total_debt}
  {joao.name} ({joao.phone}): spent {joao.total_spent}, debt {joao.total_debt}
""")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
