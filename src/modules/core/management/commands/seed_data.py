from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.accounts.constants import Role
from modules.accounts.dtos import Actor
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.customers.dtos import CreateCustomerDTO
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.services import CustomerService
from modules.orders.constants import OrderSource, PaymentMethod
from modules.orders.dtos import (
    AssignOrderDTO,
    CancelOrderDTO,
    CreateOrderDTO,
    DeliverOrderDTO,
    OrderItemDTO,
    ReturnOrderDTO,
)
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.stores.models import Store
from modules.stores.repositories.django_repository import StoreDjangoRepository

STORES = [
    ("Downtown", "12 Market Street", "5550100001"),
    ("Riverside", "48 River Road", "5550100002"),
]

CUSTOMERS = [
    ("Asha Verma", "A-101"),
    ("Rahul Nair", "A-204"),
    ("Meera Iyer", "B-305"),
    ("Kabir Shah", "C-110"),
    ("Priya Das", "C-402"),
]

ITEMS = ["Milk 1L", "Bread", "Eggs (12)", "Rice 5kg", "Detergent", "Apples 1kg"]

# Where each seeded order ends up in its lifecycle.
OUTCOMES = [
    "created",
    "assigned",
    "out_for_delivery",
    "delivered",
    "delivered",
    "delivered_credit",
    "cancelled",
    "returned",
]


class Command(BaseCommand):
    help = "Seed database with stores, staff, customers and orders for development."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20, help="Orders per store.")

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        admin = self._seed_admin()
        actor = Actor.from_user(admin)
        users = UserDjangoRepository()
        stores = StoreDjangoRepository()
        customers = CustomerDjangoRepository()
        self._customer_service = CustomerService(customers, users, stores)
        self._order_service = OrderService(
            OrderDjangoRepository(), customers, users, stores
        )

        orders_created = 0
        for name, address, phone in STORES:
            store, _ = Store.objects.get_or_create(
                name=name, defaults={"address": address, "phone": phone}
            )
            self._seed_staff(store)
            store_customers = self._seed_customers(actor, store)
            if not Order.objects.filter(store=store).exists():
                orders_created += self._seed_orders(
                    actor, admin, store, store_customers, options["orders"]
                )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"stores={Store.objects.count()}, "
                f"customers={Customer.objects.count()}, "
                f"orders={orders_created}"
            )
        )

    def _seed_admin(self):
        User = get_user_model()
        admin = User.objects.filter(email="admin@deliveryhub.local").first()
        if admin is None:
            admin = User.objects.create_superuser(
                "admin@deliveryhub.local", password="Admin@12345"
            )
        return admin

    def _seed_staff(self, store: Store) -> None:
        User = get_user_model()
        slug = store.name.lower()
        staff = [
            (f"manager.{slug}@deliveryhub.local", f"{store.name} Manager", Role.STORE_MANAGER),
            (f"rider1.{slug}@deliveryhub.local", f"{store.name} Rider 1", Role.DELIVERY_BOY),
            (f"rider2.{slug}@deliveryhub.local", f"{store.name} Rider 2", Role.DELIVERY_BOY),
        ]
        for email, name, role in staff:
            if not User.objects.filter(email=email).exists():
                User.objects.create_user(
                    email, password="Staff@12345", name=name, role=role, store=store
                )

    def _seed_customers(self, actor: Actor, store: Store) -> list[Customer]:
        self.stdout.write(f"Creating customers for {store.name}...")
        seeded = []
        for index, (name, apartment) in enumerate(CUSTOMERS):
            email = f"{name.split()[0].lower()}.{store.name.lower()}@example.com"
            customer = Customer.objects.filter(user__email=email).first()
            if customer is None:
                customer = self._customer_service.create_customer(
                    actor,
                    CreateCustomerDTO(
                        name=name,
                        phone=f"98{index:02d}{random.randint(100000, 999999)}",
                        email=email,
                        store_id=store.id,
                        apartment=apartment,
                    ),
                )
            seeded.append(customer)
        return seeded

    def _seed_orders(self, actor, admin, store, customers, count: int) -> int:
        self.stdout.write(f"Creating orders for {store.name}...")
        riders = list(
            get_user_model().objects.filter(store=store, role=Role.DELIVERY_BOY)
        )
        service = self._order_service
        for _ in range(count):
            items = random.sample(ITEMS, k=random.randint(1, 3))
            amount = Decimal(random.randint(100, 2500)).quantize(Decimal("0.01"))
            order = service.create_order(
                actor,
                CreateOrderDTO(
                    customer_id=random.choice(customers).id,
                    store_id=store.id,
                    source=random.choice(list(OrderSource)),
                    invoice_number=f"INV-{random.randint(10000, 99999)}",
                    invoice_amount=amount,
                    total_items=len(items),
                    items=[
                        OrderItemDTO(description=item, quantity=random.randint(1, 3))
                        for item in items
                    ],
                ),
            )
            outcome = random.choice(OUTCOMES)
            if outcome == "created":
                continue
            if outcome == "cancelled":
                service.cancel(actor, order.id, CancelOrderDTO(reason="Customer unavailable"))
                continue

            service.assign(
                actor, order.id, AssignOrderDTO(delivery_partner_id=random.choice(riders).id)
            )
            if outcome == "assigned":
                continue
            service.start_delivery(actor, order.id)
            if outcome == "out_for_delivery":
                continue

            method = (
                PaymentMethod.CUSTOMER_CREDIT
                if outcome == "delivered_credit"
                else random.choice([PaymentMethod.CASH, PaymentMethod.CARD, PaymentMethod.UPI])
            )
            service.deliver(actor, order.id, DeliverOrderDTO(payment_method=method))
            if outcome == "returned":
                service.process_return(
                    actor,
                    order.id,
                    ReturnOrderDTO(
                        refund_amount=(amount / 2).quantize(Decimal("0.01")),
                        refund_method=PaymentMethod.CASH,
                        reason="Damaged item",
                    ),
                    processed_by=admin,
                )
        self.stdout.write(self.style.SUCCESS(f"Creating orders for {store.name}... Done!"))
        return count
