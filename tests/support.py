from stockledger.config import Settings
from stockledger.container import build_services
from stockledger.schemas.user import User

ADMIN = User(username="admin", name="Admin", role="admin")
MANAGER = User(username="encargada", name="Encargada", role="user")


def make_settings(**overrides) -> Settings:
    values = dict(
        DATABASE_URL="sqlite://",
        SEED_DEFAULT_PRODUCTS=False,
        ENVIRONMENT="local",
        SESSION_SECRET="test-secret",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_services(start: bool = True, **overrides):
    services = build_services(make_settings(**overrides))
    if start:
        services.start()
    return services


def add_product(services, name: str, quantity, unit: str = "pz", **fields) -> str:
    fields.update(name=name, unit=unit)
    return services.inventory.create_product(fields, quantity, ADMIN)
